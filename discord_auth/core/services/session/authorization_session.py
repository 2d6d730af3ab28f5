import secrets

from discord_auth.core.models.session import AuthorizationSession
from discord_auth.core.security import sanitize_return_url
from discord_auth.core.storage.session_storage import SessionStorage
from discord_auth.runtime.context import get_config


class AuthorizationSessionService:
    """Pending authorization requests, keyed ``auth:{id}``."""

    def __init__(self, session_storage: SessionStorage) -> None:
        self._storage = session_storage

    async def create_authorization_session(
        self, state: str, return_to: str | None, pkce_verifier: str | None = None
    ) -> AuthorizationSession:
        """Create the session that ties Discord's redirect back to this browser.

        Args:
            state: CSRF state parameter sent to Discord
            return_to: Requested post-login destination (sanitized here)
            pkce_verifier: PKCE code verifier, if PKCE is enabled

        Returns:
            The stored authorization session
        """
        config = get_config()
        ttl = config.discord.authorization_session_ttl_seconds

        session = AuthorizationSession.create(
            session_id=secrets.token_urlsafe(32),
            state=state,
            pkce_verifier=pkce_verifier,
            return_to=sanitize_return_url(
                return_to,
                default=config.discord.default_return_url,
                allowed_hosts=config.security.allowed_redirect_hosts,
            ),
            ttl_seconds=ttl,
        )
        await self._storage.set(f"auth:{session.id}", session, ttl)
        return session

    async def consume_authorization_session(
        self, session_id: str, state: str | None
    ) -> AuthorizationSession | None:
        """Validate ``state`` and retire the session.

        The session is deleted whatever the outcome, so a state value can only
        be redeemed once.
        """
        session = await self._storage.get(f"auth:{session_id}", AuthorizationSession)
        await self._storage.delete(f"auth:{session_id}")

        if session is None or session.used or session.is_expired():
            return None
        if not state or not secrets.compare_digest(state, session.state):
            return None

        session.mark_used()
        return session
