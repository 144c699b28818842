"""PKCE (Proof Key for Code Exchange) utilities.

Implements the S256 method of RFC 7636. The broker accepts no other method.
"""

import base64
import hashlib
import hmac
import re
import secrets

from wpreader.core.constants import PKCE_METHOD_S256
from wpreader.core.exceptions import ClientInputError

# BASE64URL of a 32-byte SHA-256 digest, without padding
_S256_CHALLENGE_RE = re.compile(r"^[A-Za-z0-9_-]{43}$")


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a PKCE code_verifier and code_challenge pair.

    Returns:
        tuple[str, str]: (code_verifier, code_challenge)
    """
    code_verifier = secrets.token_urlsafe(32)
    return code_verifier, compute_challenge(code_verifier)


def compute_challenge(code_verifier: str) -> str:
    """Compute the S256 code_challenge from a code_verifier.

    Args:
        code_verifier: The code verifier string

    Returns:
        str: BASE64URL(SHA256(code_verifier)) without padding
    """
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def verify_pkce(code_verifier: str | None, code_challenge: str) -> bool:
    """Verify a PKCE code_verifier against a stored code_challenge."""
    if not code_verifier or not code_challenge:
        return False
    return hmac.compare_digest(
        compute_challenge(code_verifier).encode("ascii"),
        code_challenge.encode("utf-8"),
    )


def validate_challenge_params(
    code_challenge: str | None,
    code_challenge_method: str | None,
) -> None:
    """Reject an authorize request whose PKCE parameters are unusable.

    Raises:
        ClientInputError: challenge missing or malformed, or method other
            than S256
    """
    if not code_challenge:
        raise ClientInputError("PKCE required: code_challenge is missing")
    if code_challenge_method != PKCE_METHOD_S256:
        raise ClientInputError(
            f"PKCE required: code_challenge_method must be {PKCE_METHOD_S256}"
        )
    if not _S256_CHALLENGE_RE.fullmatch(code_challenge):
        raise ClientInputError("code_challenge is not a valid S256 challenge")
