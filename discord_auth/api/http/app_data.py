from collections.abc import Callable
from dataclasses import dataclass

import httpx
from sqlmodel import Session

from discord_auth.core.services import (
    AccountPrincipalFactory,
    AccountStore,
    AuthorizationSessionService,
    DbSessionService,
    DiscordApiClient,
    DiscordAuthHandler,
    DiscordOAuthClientService,
    ExternalSessionService,
    GuildCache,
    IdentityReconciler,
    UserSessionService,
)
from discord_auth.core.storage.session_storage import SessionStorage

AuthHandlerFactory = Callable[[Session], DiscordAuthHandler]


def default_auth_handler_factory(db_session: Session) -> DiscordAuthHandler:
    """Identity reconciler bound to one request's database session."""
    account_store = AccountStore(db_session)
    return IdentityReconciler(account_store, AccountPrincipalFactory(account_store))


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    session_storage: SessionStorage
    authorization_session_service: AuthorizationSessionService
    external_session_service: ExternalSessionService
    user_session_service: UserSessionService
    http_client: httpx.AsyncClient
    guild_cache: GuildCache
    discord_api_client: DiscordApiClient
    discord_oauth_client: DiscordOAuthClientService
    auth_handler_factory: AuthHandlerFactory = default_auth_handler_factory
