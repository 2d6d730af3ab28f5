"""Turns an external principal and its tokens into a LoginContext."""

from pydantic import ValidationError

from discord_auth.core.constants import (
    CLAIM_DISCORD_AVATAR_URL,
    CLAIM_DISCORD_LOCALE,
    CLAIM_DISCORD_VERIFIED,
    CLAIM_EMAIL,
    CLAIM_NAME,
    CLAIM_NAME_IDENTIFIER,
)
from discord_auth.core.models.claims import ClaimsPrincipal
from discord_auth.core.models.login_context import LoginContext


class LoginContextError(ValueError):
    """The external session lacks a claim or token every login needs."""


def parse_verified(value: str | None) -> bool | None:
    """Lenient boolean parse: missing is None, anything but "true" is False."""
    if value is None:
        return None
    return value.strip().lower() == "true"


def build_login_context(principal: ClaimsPrincipal, access_token: str | None) -> LoginContext:
    """Collect the login attempt's claims into a LoginContext.

    Raises:
        LoginContextError: If the Discord id, username, email or access token is missing.
    """
    missing = [
        name
        for name, value in (
            ("discord_id", principal.find_first(CLAIM_NAME_IDENTIFIER)),
            ("username", principal.find_first(CLAIM_NAME)),
            ("email", principal.find_first(CLAIM_EMAIL)),
            ("access_token", access_token),
        )
        if not value
    ]
    if missing:
        raise LoginContextError(f"External login is missing: {', '.join(missing)}")

    try:
        return LoginContext(
            discord_id=principal.find_first(CLAIM_NAME_IDENTIFIER),
            email=principal.find_first(CLAIM_EMAIL),
            username=principal.find_first(CLAIM_NAME),
            avatar_url=principal.find_first(CLAIM_DISCORD_AVATAR_URL),
            locale=principal.find_first(CLAIM_DISCORD_LOCALE),
            verified=parse_verified(principal.find_first(CLAIM_DISCORD_VERIFIED)),
            access_token=access_token,
            original_claims=list(principal.claims),
        )
    except ValidationError as e:
        raise LoginContextError(str(e)) from e
