from discord_auth.core.models.claims import Claim, ClaimsPrincipal
from discord_auth.core.models.discord import DiscordGuild, DiscordUser
from discord_auth.core.models.login_context import LoginContext
from discord_auth.core.models.result import StoreError, StoreResult
from discord_auth.core.models.session import (
    AuthorizationSession,
    ExternalSession,
    UserSession,
)

__all__ = [
    "AuthorizationSession",
    "Claim",
    "ClaimsPrincipal",
    "DiscordGuild",
    "DiscordUser",
    "ExternalSession",
    "LoginContext",
    "StoreError",
    "StoreResult",
    "UserSession",
]
