"""Database connection management with SQLAlchemy 2.0.

Provides transactional sessions for the direct-write persistence path.
Sessions are used from worker threads, so the engine is thread-safe
and each unit of work gets its own session.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from moviebonus.database.models import Base
from moviebonus.settings.database import DatabaseSettings

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Owns an engine and its session factory.

    One instance per process entry point (CLI run, API app); nothing is
    shared through module globals.

    Example:
        ```python
        db = DatabaseConnection.from_settings(settings.database)
        with db.session() as session:
            session.execute(text("SELECT 1"))
        ```
    """

    def __init__(self, url: str, echo: bool = False, **engine_options: Any) -> None:
        """Initialize engine and session factory.

        Args:
            url: SQLAlchemy database URL.
            echo: Log emitted SQL.
            **engine_options: Extra ``create_engine`` options (pool sizing).
        """
        self._engine = create_engine(url, echo=echo, pool_pre_ping=True, **engine_options)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "DatabaseConnection":
        """Build a connection from database settings.

        Pool sizing only applies to server databases, not SQLite.
        """
        url = settings.sync_url
        options: dict[str, Any] = {}
        if make_url(url).get_backend_name() != "sqlite":
            options = {"pool_size": settings.pool_size, "max_overflow": settings.pool_overflow}
        return cls(url, echo=settings.echo, **options)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional session scope.

        Automatically commits on success, rolls back on exception,
        and closes the session when done.

        Yields:
            SQLAlchemy Session instance.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create missing tables (operational helper, not a migration tool)."""
        Base.metadata.create_all(self._engine)
        logger.info("✅ Tables created")

    def check_connection(self) -> bool:
        """Test database connectivity with a simple query.

        Returns:
            True if connection successful, False otherwise.
        """
        try:
            with self.session() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database connection check failed: {e}")
            return False

    def dispose(self) -> None:
        """Dispose the connection pool."""
        self._engine.dispose()

    @property
    def engine(self) -> Engine:
        """Get the underlying engine."""
        return self._engine
