from discord_auth.core.services.session.authorization_session import (
    AuthorizationSessionService,
)
from discord_auth.core.services.session.external_session import ExternalSessionService
from discord_auth.core.services.session.user_session import UserSessionService

__all__ = [
    "AuthorizationSessionService",
    "ExternalSessionService",
    "UserSessionService",
]
