"""Discord login endpoints: start, Discord redirect target, callback and logout."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger

from discord_auth.api.http.deps import (
    get_authorization_session_service,
    get_callback_orchestrator,
    get_discord_oauth_client,
    get_external_session_service,
    get_user_session_service,
)
from discord_auth.core.constants import EXTERNAL_RETURN_URL_PROPERTY
from discord_auth.core.security import generate_pkce_pair, generate_state
from discord_auth.core.services import (
    AuthorizationSessionService,
    CallbackOrchestrator,
    DiscordOAuthClientService,
    ExternalSessionService,
    UserSessionService,
)
from discord_auth.core.services.discord.oauth_client import OAuthError
from discord_auth.core.services.login import (
    AccountConflictError,
    CallbackState,
    LoginContextError,
    ReconciliationError,
)
from discord_auth.runtime.config.config_data import DiscordConfig
from discord_auth.runtime.context import get_config

LOGOUT_PATH = "/auth/discord/logout"


def _cookie_settings() -> dict[str, Any]:
    """Cookie attributes shared by every cookie of the login flow.

    SameSite=Lax still sends the cookie on the top-level GET navigation that
    Discord's redirect performs.
    """
    config = get_config()
    return {
        "httponly": True,
        "secure": config.app.environment == "production",
        "samesite": config.security.cookie_samesite,
        "path": "/",
    }


def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": detail})


async def login(
    return_url: str | None = Query(default=None, alias="returnUrl"),
    authorization_sessions: AuthorizationSessionService = Depends(
        get_authorization_session_service
    ),
    oauth_client: DiscordOAuthClientService = Depends(get_discord_oauth_client),
) -> RedirectResponse:
    """Start a Discord login and send the browser to Discord's consent screen."""
    config = get_config()
    logger.info("Initiating Discord login, return URL: {}", return_url)

    state = generate_state()
    pkce_verifier, pkce_challenge = (
        generate_pkce_pair() if config.discord.use_pkce else (None, None)
    )
    auth_session = await authorization_sessions.create_authorization_session(
        state=state, return_to=return_url, pkce_verifier=pkce_verifier
    )

    response = RedirectResponse(
        url=oauth_client.build_authorization_url(state, pkce_challenge),
        status_code=status.HTTP_302_FOUND,
    )
    response.set_cookie(
        key=config.security.authorization_cookie_name,
        value=auth_session.id,
        max_age=config.discord.authorization_session_ttl_seconds,
        **_cookie_settings(),
    )
    return response


async def signin(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    authorization_sessions: AuthorizationSessionService = Depends(
        get_authorization_session_service
    ),
    external_sessions: ExternalSessionService = Depends(get_external_session_service),
    oauth_client: DiscordOAuthClientService = Depends(get_discord_oauth_client),
) -> RedirectResponse:
    """Discord's redirect target: exchange the code and store the external session."""
    config = get_config()
    cookie_name = config.security.authorization_cookie_name
    auth_session_id = request.cookies.get(cookie_name)

    auth_session = None
    if auth_session_id:
        auth_session = await authorization_sessions.consume_authorization_session(
            auth_session_id, state
        )

    if error == "access_denied":
        logger.info("Discord login cancelled on the consent screen")
        response = RedirectResponse(
            url=config.discord.access_denied_path, status_code=status.HTTP_302_FOUND
        )
        response.delete_cookie(cookie_name, path="/")
        return response

    if error:
        logger.warning("Discord authorization failed: {}", error)
        raise HTTPException(status_code=400, detail=f"Discord authorization failed: {error}")

    if auth_session is None:
        logger.warning("Discord sign-in with missing or invalid state")
        raise HTTPException(status_code=400, detail="Invalid or expired authorization state")

    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")

    try:
        principal, tokens = await oauth_client.authenticate(code, auth_session.pkce_verifier)
    except OAuthError as e:
        logger.warning("Discord sign-in failed: {}", e)
        raise HTTPException(status_code=502, detail="Discord sign-in failed") from e

    external_session_id = await external_sessions.create_external_session(
        principal, tokens, {EXTERNAL_RETURN_URL_PROPERTY: auth_session.return_to}
    )

    response = RedirectResponse(
        url=config.discord.callback_path, status_code=status.HTTP_302_FOUND
    )
    response.delete_cookie(cookie_name, path="/")
    response.set_cookie(
        key=config.security.external_cookie_name,
        value=external_session_id,
        max_age=config.discord.external_session_ttl_seconds,
        **_cookie_settings(),
    )
    return response


async def callback(
    request: Request,
    orchestrator: CallbackOrchestrator = Depends(get_callback_orchestrator),
) -> RedirectResponse | JSONResponse:
    """Reconcile the external session with a local account and sign in locally."""
    config = get_config()
    external_cookie = config.security.external_cookie_name

    try:
        outcome = await orchestrator.complete(request.cookies.get(external_cookie))
    except LoginContextError as e:
        logger.error("Discord login context is invalid: {}", e)
        return _error_response(500, "login_context_invalid", "Discord login is incomplete")
    except AccountConflictError as e:
        logger.error("Discord login hit an account conflict: {}", e)
        return _error_response(500, "account_conflict", "Account was created concurrently")
    except ReconciliationError as e:
        logger.error("Discord login could not be reconciled: {}", e)
        return _error_response(500, "reconciliation_failed", "Account could not be updated")

    if outcome.state is CallbackState.UNAUTHORIZED:
        response = _error_response(401, "unauthorized", "External login not found or expired")
        response.delete_cookie(external_cookie, path="/")
        return response

    response = RedirectResponse(url=outcome.redirect_url, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(external_cookie, path="/")
    response.set_cookie(
        key=config.security.session_cookie_name,
        value=outcome.session_id,
        max_age=config.app.session_max_age,
        **_cookie_settings(),
    )
    return response


async def logout(
    request: Request,
    user_sessions: UserSessionService = Depends(get_user_session_service),
) -> JSONResponse:
    """Drop the local session."""
    cookie_name = get_config().security.session_cookie_name
    session_id = request.cookies.get(cookie_name)
    if session_id:
        await user_sessions.delete_user_session(session_id)

    response = JSONResponse({"message": "Logged out"})
    response.delete_cookie(cookie_name, path="/")
    return response


def create_discord_auth_router(discord: DiscordConfig) -> APIRouter:
    """Router for the login flow, mounted at the configured paths."""
    router = APIRouter(tags=["discord-auth"])
    router.add_api_route(discord.login_path, login, methods=["GET"])
    router.add_api_route(discord.signin_path, signin, methods=["GET"])
    router.add_api_route(discord.callback_path, callback, methods=["GET"], response_model=None)
    router.add_api_route(LOGOUT_PATH, logout, methods=["POST"])
    return router
