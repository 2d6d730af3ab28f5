"""Database initialization script."""

from discord_auth.api.utils.app_startup import configure_logging
from discord_auth.core.services.database.db_session import DbSessionService


def init_db() -> None:
    """Create all account store tables."""
    DbSessionService().create_all()


if __name__ == "__main__":
    configure_logging()
    init_db()
