"""Database connection and transaction helpers for slugtrail."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from .config import Settings, get_settings
from .errors import ConflictError
from .models import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Database:
    """Database manager for slugtrail."""

    def __init__(self, url: Optional[str] = None, settings: Optional[Settings] = None,
                 create_tables: bool = True):
        """Initialize database connection.

        Args:
            url: SQLAlchemy database URL. If not provided, uses settings.
            settings: Settings instance. Defaults to the global settings.
            create_tables: Create the slugs table (and any model registered on
                the shared Base) on startup.
        """
        self.settings = settings or get_settings()
        url = url or self.settings.database_url

        # Ensure directory exists for file-based SQLite
        parsed = make_url(url)
        if parsed.drivername.startswith("sqlite") and parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(url, echo=self.settings.sql_echo)

        if create_tables:
            self.create_tables()

        # Create session factory
        self.SessionLocal = sessionmaker(bind=self.engine)

        logger.info(f"Database initialized at {parsed.render_as_string(hide_password=True)}")

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            SQLAlchemy session
        """
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on any error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise
        finally:
            session.close()

    def transaction(self, work: Callable[[Session], T], retries: Optional[int] = None) -> T:
        """Run ``work`` in its own transaction, retrying on slug conflicts.

        Each attempt gets a fresh session, so ``work`` must build its objects
        inside the callable. Only ConflictError is retried; anything else
        propagates on the first failure.

        Args:
            work: Callable receiving the session
            retries: Maximum number of attempts. Defaults to settings.max_conflict_retries.

        Returns:
            Whatever ``work`` returns
        """
        attempts = retries if retries is not None else self.settings.max_conflict_retries
        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_random(0, 0.05),
            retry=retry_if_exception_type(ConflictError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                with self.session_scope() as session:
                    result = work(session)
        return result

    def dispose(self) -> None:
        self.engine.dispose()
