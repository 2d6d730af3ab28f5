"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from discord_auth.runtime.config.config_data import ConfigData
from discord_auth.runtime.context import get_config


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:")


class DbSessionService:
    def __init__(self, config: ConfigData | None = None):
        """Initialize the shared database engine and session factory."""
        main_config = config or get_config()
        db_config = main_config.database

        logger.info(
            "Configuring database engine for environment: {}", main_config.app.environment
        )
        engine_kwargs: dict[str, Any] = {
            "echo": False,
            "hide_parameters": True,
            "connect_args": self._get_connect_args(main_config),
        }

        if _is_memory_sqlite(db_config.url):
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs["poolclass"] = StaticPool
        elif not db_config.url.startswith("sqlite"):
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                    "pool_pre_ping": True,
                }
            )

        self._engine = create_engine(db_config.url, **engine_kwargs)

    @property
    def engine(self):
        return self._engine

    def _get_connect_args(self, config: ConfigData) -> dict:
        """Get database-specific connection arguments."""
        connect_args: dict[str, Any] = {}

        if config.database.url.startswith("postgresql"):
            connect_args.update(
                {
                    "application_name": f"{config.app.environment}_discord_auth",
                    "connect_timeout": 30,
                }
            )
        elif config.database.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False

            if config.app.environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for better performance and reliability."
                )

        return connect_args

    def create_all(self) -> None:
        """Create all account store tables."""
        from discord_auth.entities.core.account import (  # noqa: F401
            AccountClaimTable,
            AccountLoginTable,
            AccountTable,
            AccountTokenTable,
        )

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(self._engine, expire_on_commit=False, autoflush=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Context manager style helper for repositories and tests."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Database transaction failed: {}: {}", type(e).__name__, e)
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database health check failed: {}: {}", type(e).__name__, e)
            return False

    def dispose(self) -> None:
        self._engine.dispose()
