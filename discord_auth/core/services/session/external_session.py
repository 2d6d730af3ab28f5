import secrets

from discord_auth.core.models.claims import ClaimsPrincipal
from discord_auth.core.models.session import ExternalSession
from discord_auth.core.storage.session_storage import SessionStorage
from discord_auth.runtime.context import get_config


class ExternalSessionService:
    """Transient external sign-in results, keyed ``external:{id}``."""

    def __init__(self, session_storage: SessionStorage) -> None:
        self._storage = session_storage

    async def create_external_session(
        self,
        principal: ClaimsPrincipal,
        tokens: dict[str, str],
        properties: dict[str, str] | None = None,
    ) -> str:
        ttl = get_config().discord.external_session_ttl_seconds
        session = ExternalSession.create(
            session_id=secrets.token_urlsafe(32),
            principal=principal,
            tokens=tokens,
            properties=properties,
            ttl_seconds=ttl,
        )
        await self._storage.set(f"external:{session.id}", session, ttl)
        return session.id

    async def get_external_session(self, session_id: str | None) -> ExternalSession | None:
        """Return the external session, or None if it is missing or expired."""
        if not session_id:
            return None

        session = await self._storage.get(f"external:{session_id}", ExternalSession)
        if session is None:
            return None

        if session.is_expired():
            await self.delete_external_session(session_id)
            return None

        return session

    async def delete_external_session(self, session_id: str) -> None:
        await self._storage.delete(f"external:{session_id}")
