"""Core services exports."""

# Account store
from .account.account_store import AccountStore
from .account.principal_factory import AccountPrincipalFactory

# Database Service
from .database.db_session import DbSessionService

# Discord Services
from .discord.api_client import DiscordApiClient
from .discord.guild_cache import GuildCache
from .discord.oauth_client import DiscordOAuthClientService

# Session Services
from .session.authorization_session import AuthorizationSessionService
from .session.external_session import ExternalSessionService
from .session.user_session import UserSessionService

# Login Services
from .login.callback_orchestrator import CallbackOrchestrator
from .login.identity_reconciler import DiscordAuthHandler, IdentityReconciler

__all__ = [
    # Account store
    "AccountPrincipalFactory",
    "AccountStore",
    # Database Service
    "DbSessionService",
    # Discord Services
    "DiscordApiClient",
    "DiscordOAuthClientService",
    "GuildCache",
    # Session Services
    "AuthorizationSessionService",
    "ExternalSessionService",
    "UserSessionService",
    # Login Services
    "CallbackOrchestrator",
    "DiscordAuthHandler",
    "IdentityReconciler",
]
