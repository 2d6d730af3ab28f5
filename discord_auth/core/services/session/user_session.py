import secrets

from discord_auth.core.constants import CLAIM_NAME_IDENTIFIER
from discord_auth.core.models.claims import ClaimsPrincipal
from discord_auth.core.models.session import UserSession
from discord_auth.core.storage.session_storage import SessionStorage
from discord_auth.runtime.context import get_config


class UserSessionService:
    """Service for managing local user sessions."""

    def __init__(self, session_storage: SessionStorage) -> None:
        self._storage = session_storage

    async def create_user_session(self, principal: ClaimsPrincipal, provider: str) -> str:
        """Create a local session for a reconciled principal.

        Args:
            principal: Local principal; its ``sub`` claim is the account ID
            provider: Login provider that authenticated the user

        Returns:
            Session ID

        Raises:
            ValueError: If the principal carries no account identifier
        """
        account_id = principal.find_first(CLAIM_NAME_IDENTIFIER)
        if not account_id:
            raise ValueError("Principal has no account identifier claim")

        max_age = get_config().app.session_max_age
        user_session = UserSession.create(
            session_id=secrets.token_urlsafe(32),
            account_id=account_id,
            provider=provider,
            claims=principal.claims,
            session_max_age=max_age,
        )
        await self._storage.set(f"user:{user_session.id}", user_session, max_age)
        return user_session.id

    async def get_user_session(self, session_id: str | None) -> UserSession | None:
        """Get user session by ID.

        Returns:
            User session or None if not found/expired
        """
        if not session_id:
            return None

        user_session = await self._storage.get(f"user:{session_id}", UserSession)
        if not user_session:
            return None

        if user_session.is_expired():
            await self.delete_user_session(session_id)
            return None

        user_session.update_access()
        remaining = max(1, user_session.expires_at - user_session.last_accessed_at)
        await self._storage.set(f"user:{user_session.id}", user_session, remaining)
        return user_session

    async def delete_user_session(self, session_id: str) -> None:
        await self._storage.delete(f"user:{session_id}")

    async def purge_expired(self) -> int:
        """Cleanup expired sessions from storage."""
        return await self._storage.cleanup_expired()
