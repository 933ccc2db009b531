"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.bookshelf.runtime.config.config_data import DatabaseConfig
from src.bookshelf.runtime.context import get_config


class DbSessionService:
    def __init__(self, db_config: DatabaseConfig | None = None):
        """Initialize the shared database engine and session factory."""

        logger.info("Setting up database engine and session factory")
        main_config = get_config()
        db_config = db_config or main_config.database
        self._config = db_config

        if db_config.is_sqlite:
            engine_kwargs: dict[str, Any] = {
                "echo": db_config.echo,
                "connect_args": {"check_same_thread": False},
            }
            if ":memory:" in db_config.connection_string or db_config.connection_string in ("sqlite://", "sqlite:///"):
                # One shared connection so every session sees the same in-memory database
                engine_kwargs["poolclass"] = StaticPool
            if main_config.app.environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for better performance and reliability."
                )
        else:
            if not db_config.url and not db_config.password:
                logger.warning("No database password configured; connecting without one")
            engine_kwargs = {
                # Connection pool settings
                "pool_size": db_config.pool_size,
                "max_overflow": db_config.max_overflow,
                "pool_timeout": db_config.pool_timeout,
                "pool_recycle": db_config.pool_recycle,
                "pool_pre_ping": True,  # Validate connections before use
                "echo": db_config.echo,
                "connect_args": {
                    "application_name": f"{main_config.app.environment}_bookshelf",
                    "connect_timeout": 30,
                },
            }

        logger.info(
            "Initializing database engine using connection string: {}",
            db_config.sanitized_connection_string,
        )
        self._engine = create_engine(db_config.connection_string, **engine_kwargs)

    @property
    def engine(self):
        return self._engine

    def create_all(self) -> None:
        """Create all database tables. Safe to call on every startup."""
        from src.bookshelf.entities.book import BookTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(
            self._engine,
            expire_on_commit=False,  # Prevent lazy loading issues
            autoflush=True,
        )

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Transactional scope: commit on success, roll back and re-raise on error."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                "Database transaction failed",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(
                "Database health check failed",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            return False

    def get_pool_status(self) -> dict:
        """Get current connection pool status for monitoring."""
        pool = self._engine.pool
        return {
            "size": getattr(pool, "size", lambda: 0)(),
            "checked_in": getattr(pool, "checkedin", lambda: 0)(),
            "checked_out": getattr(pool, "checkedout", lambda: 0)(),
            "overflow": getattr(pool, "overflow", lambda: 0)(),
        }

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        logger.info("Disposing database engine")
        self._engine.dispose()
