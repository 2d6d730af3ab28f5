from discord_auth.core.services.database.db_session import DbSessionService

__all__ = ["DbSessionService"]
