"""Security utilities for the Discord OAuth2 flow."""

import base64
import hashlib
import secrets
from urllib.parse import urlparse


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate (default 32)

    Returns:
        URL-safe base64 encoded token
    """
    return (
        base64.urlsafe_b64encode(secrets.token_bytes(length))
        .decode("utf-8")
        .rstrip("=")
    )


def generate_state() -> str:
    """Generate a state parameter for CSRF protection (256 bits of entropy)."""
    return generate_secure_token(32)


def generate_pkce_pair() -> tuple[str, str]:
    """Generate PKCE code verifier and S256 challenge pair.

    Returns:
        Tuple of (code_verifier, code_challenge)
    """
    code_verifier = generate_secure_token(32)
    challenge_bytes = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    code_challenge = (
        base64.urlsafe_b64encode(challenge_bytes).decode("utf-8").rstrip("=")
    )
    return code_verifier, code_challenge


def sanitize_return_url(
    return_to: str | None, default: str = "/", allowed_hosts: list[str] | None = None
) -> str:
    """Sanitize a return URL to prevent open redirects.

    Args:
        return_to: User-provided return URL
        default: Fallback when ``return_to`` is missing or unsafe
        allowed_hosts: Optional list of allowed hosts for absolute URLs

    Returns:
        Sanitized return URL (relative path or allowed absolute URL)
    """
    if not return_to:
        return default

    return_to = return_to.strip()

    # Relative paths only, no protocol-relative URLs or control characters
    if return_to.startswith("/") and not return_to.startswith("//"):
        if "\\" not in return_to and all(ord(c) >= 32 for c in return_to):
            return return_to

    if allowed_hosts and return_to.startswith(("http://", "https://")):
        if urlparse(return_to).hostname in allowed_hosts:
            return return_to

    return default
