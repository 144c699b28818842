"""Custom exceptions for the WordPress Reader auth broker and MCP server."""


class MCPToolError(Exception):
    """Custom exception for MCP tool errors that should be returned as JSON-RPC errors."""

    def __init__(self, message: str, code: int = -32000):
        self.message = message
        self.code = code
        super().__init__(message)


# ========================================
# Base Exceptions
# ========================================


class WPReaderError(Exception):
    """Base exception for all WordPress Reader errors."""


# ========================================
# Authorization Flow Exceptions
# ========================================


class AuthFlowError(WPReaderError):
    """Base exception for errors recovered at the HTTP boundary.

    Each subclass maps to one HTTP status code and one OAuth ``error`` value.
    ``description`` is safe to return to the caller.
    """

    status_code = 400
    error = "invalid_request"

    def __init__(self, description: str | None = None):
        self.description = description or self.error
        super().__init__(self.description)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "error_description": self.description}


class ClientInputError(AuthFlowError):
    """Missing or invalid request parameters (PKCE, state, grant fields)."""


class UnsupportedGrantTypeError(ClientInputError):
    """Token request used a grant type other than authorization_code."""

    error = "unsupported_grant_type"


class ReplayOrExpiredError(AuthFlowError):
    """Unknown or expired state, authorization code or session."""

    error = "invalid_grant"


class UpstreamError(AuthFlowError):
    """WordPress.com returned an error, timed out or sent a malformed body."""

    status_code = 500
    error = "server_error"

    def __init__(self, detail: str | None = None):
        # detail is for server-side logs only
        self.detail = detail
        super().__init__("Authentication failed")


class AccessDeniedError(AuthFlowError):
    """Base exception for Access Guard rejections."""

    status_code = 403
    error = "access_denied"


class OriginDeniedError(AccessDeniedError):
    """Request did not come from a loopback address."""


class SharedSecretError(AccessDeniedError):
    """Shared secret header missing, wrong, or no secret configured."""

    status_code = 401
    error = "unauthorized"


class RateLimitedError(AccessDeniedError):
    """Origin exceeded the sliding-window request budget."""

    status_code = 429
    error = "rate_limited"


class CredentialInvalidError(AuthFlowError):
    """Bearer credential failed signature, issuer or expiry checks."""

    status_code = 401
    error = "invalid_token"


# ========================================
# File I/O Exceptions
# ========================================


class FileOperationError(WPReaderError):
    """Base exception for file operations."""


class FileWriteError(FileOperationError):
    """File write operation failed."""


# ========================================
# External Service Exceptions
# ========================================


class ExternalServiceError(WPReaderError):
    """Base exception for external service errors."""


class WordPressAPIError(ExternalServiceError):
    """WordPress.com REST API call failed."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"WordPress API error: {status_code} - {message}")
