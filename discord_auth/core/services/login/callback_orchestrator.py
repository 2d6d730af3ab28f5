"""Completes a Discord login: external session in, local session out."""

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from discord_auth.core.constants import (
    ACCESS_TOKEN_NAME,
    CLAIM_NAME_IDENTIFIER,
    EXTERNAL_RETURN_URL_PROPERTY,
    PROVIDER_NAME,
)
from discord_auth.core.services.login.context_builder import build_login_context
from discord_auth.core.services.login.identity_reconciler import DiscordAuthHandler
from discord_auth.core.services.session.external_session import ExternalSessionService
from discord_auth.core.services.session.user_session import UserSessionService


class CallbackState(str, Enum):
    AWAITING_EXTERNAL_SESSION = "awaiting_external_session"
    CONTEXT_BUILT = "context_built"
    RECONCILED = "reconciled"
    LOCAL_SESSION_ESTABLISHED = "local_session_established"
    UNAUTHORIZED = "unauthorized"


@dataclass
class CallbackOutcome:
    state: CallbackState
    redirect_url: str | None = None
    session_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is CallbackState.LOCAL_SESSION_ESTABLISHED


class CallbackOrchestrator:
    """Single pass over one callback request, no retries.

    Only a missing or invalid external session ends in ``UNAUTHORIZED``.
    Every later failure propagates to the caller.
    """

    def __init__(
        self,
        external_sessions: ExternalSessionService,
        user_sessions: UserSessionService,
        auth_handler: DiscordAuthHandler,
        default_return_url: str,
    ) -> None:
        self._external_sessions = external_sessions
        self._user_sessions = user_sessions
        self._auth_handler = auth_handler
        self._default_return_url = default_return_url

    async def complete(self, external_session_id: str | None) -> CallbackOutcome:
        external = await self._external_sessions.get_external_session(external_session_id)
        if external is None:
            logger.warning("Discord callback without a valid external session")
            return CallbackOutcome(state=CallbackState.UNAUTHORIZED)

        principal = external.to_principal()
        logger.info(
            "Discord callback received for user {}", principal.find_first(CLAIM_NAME_IDENTIFIER)
        )

        context = build_login_context(principal, external.get_token(ACCESS_TOKEN_NAME))
        logger.debug("Callback state: {}", CallbackState.CONTEXT_BUILT.value)

        local_principal = await self._auth_handler.on_discord_login(context)
        logger.debug("Callback state: {}", CallbackState.RECONCILED.value)

        await self._external_sessions.delete_external_session(external.id)
        session_id = await self._user_sessions.create_user_session(
            local_principal, PROVIDER_NAME
        )

        return_url = (
            external.properties.get(EXTERNAL_RETURN_URL_PROPERTY) or self._default_return_url
        )
        logger.info("Discord login successful, redirecting to {}", return_url)
        return CallbackOutcome(
            state=CallbackState.LOCAL_SESSION_ESTABLISHED,
            redirect_url=return_url,
            session_id=session_id,
        )
