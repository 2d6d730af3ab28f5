"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request, status
from sqlmodel import Session

from discord_auth.api.http.app_data import ApplicationDependencies
from discord_auth.core.models.session import UserSession
from discord_auth.core.services import (
    AccountStore,
    AuthorizationSessionService,
    CallbackOrchestrator,
    DiscordApiClient,
    DiscordAuthHandler,
    DiscordOAuthClientService,
    ExternalSessionService,
    UserSessionService,
)
from discord_auth.runtime.context import get_config


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_db_session(request: Request) -> Iterator[Session]:
    """Database session scoped to one request."""
    app_deps = get_app_dependencies(request)
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_authorization_session_service(request: Request) -> AuthorizationSessionService:
    """Get the Authorization Session service instance."""
    return get_app_dependencies(request).authorization_session_service


def get_external_session_service(request: Request) -> ExternalSessionService:
    """Get the External Session service instance."""
    return get_app_dependencies(request).external_session_service


def get_user_session_service(request: Request) -> UserSessionService:
    """Get the User Session service instance."""
    return get_app_dependencies(request).user_session_service


def get_discord_api_client(request: Request) -> DiscordApiClient:
    """Get the Discord API client instance."""
    return get_app_dependencies(request).discord_api_client


def get_discord_oauth_client(request: Request) -> DiscordOAuthClientService:
    """Get the Discord OAuth2 client instance."""
    return get_app_dependencies(request).discord_oauth_client


def get_account_store(db: Session = Depends(get_db_session)) -> AccountStore:
    return AccountStore(db)


def get_auth_handler(
    request: Request, db: Session = Depends(get_db_session)
) -> DiscordAuthHandler:
    """The application's login handler, bound to this request's database session."""
    return get_app_dependencies(request).auth_handler_factory(db)


def get_callback_orchestrator(
    external_sessions: ExternalSessionService = Depends(get_external_session_service),
    user_sessions: UserSessionService = Depends(get_user_session_service),
    auth_handler: DiscordAuthHandler = Depends(get_auth_handler),
) -> CallbackOrchestrator:
    return CallbackOrchestrator(
        external_sessions,
        user_sessions,
        auth_handler,
        default_return_url=get_config().discord.default_return_url,
    )


async def get_optional_user_session(
    request: Request,
    user_sessions: UserSessionService = Depends(get_user_session_service),
) -> UserSession | None:
    session_id = request.cookies.get(get_config().security.session_cookie_name)
    return await user_sessions.get_user_session(session_id)


async def require_user_session(
    user_session: UserSession | None = Depends(get_optional_user_session),
) -> UserSession:
    """Require an authenticated local session."""
    if user_session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user_session
