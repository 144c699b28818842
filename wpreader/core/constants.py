"""Constants for the WordPress Reader auth broker."""

# ========================================
# WordPress.com endpoints
# ========================================
WORDPRESS_AUTHORIZE_URL = "https://public-api.wordpress.com/oauth2/authorize"
WORDPRESS_TOKEN_URL = "https://public-api.wordpress.com/oauth2/token"
WORDPRESS_API_HOST = "https://public-api.wordpress.com"
WORDPRESS_API_BASE = f"{WORDPRESS_API_HOST}/rest/v1.1"

# ========================================
# OAuth
# ========================================
PKCE_METHOD_S256 = "S256"
GRANT_TYPE_AUTHORIZATION_CODE = "authorization_code"
TOKEN_TYPE_BEARER = "Bearer"
JWT_ALGORITHM = "HS256"

RESPONSE_MODE_REDIRECT = "redirect"
RESPONSE_MODE_PAGE = "page"
RESPONSE_MODES = (RESPONSE_MODE_REDIRECT, RESPONSE_MODE_PAGE)

# ========================================
# Lifetimes (seconds)
# ========================================
PENDING_STATE_TTL_SECONDS = 600
AUTH_CODE_TTL_SECONDS = 600
SESSION_TTL_SECONDS = 3600
BEARER_TTL_SECONDS = 3600
SWEEP_INTERVAL_SECONDS = 60

# ========================================
# Access Guard
# ========================================
RATE_LIMIT_MAX_REQUESTS = 10
RATE_LIMIT_WINDOW_SECONDS = 60
DEFAULT_SECRET_HEADER = "x-mcp-secret"

# ========================================
# Persistence
# ========================================
TOKENS_FILE = "tokens.json"
AUTH_CODES_FILE = "auth_codes.json"
TOKENS_COLLECTION = "tokens"
AUTH_CODES_COLLECTION = "authCodes"
LAST_UPDATED_KEY = "lastUpdated"

# ========================================
# Timeouts
# ========================================
UPSTREAM_TIMEOUT_SECONDS = 5.0
