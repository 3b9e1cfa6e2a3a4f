"""
Engine and session lifecycle for the family data store.

Any SQLAlchemy URL works. SQLite is the local default and an in-memory
SQLite URL ("sqlite://") keeps a single shared connection so that tests
see the tables they create. Server databases get a pre-pinged pool.
"""
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from parently.core.config import get_settings
from parently.core.logging_config import get_logger

logger = get_logger(__name__)

IN_MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")


def _engine_kwargs(db_url: str) -> dict:
    if db_url.startswith("sqlite"):
        # Routes run in the threadpool
        kwargs = {"connect_args": {"check_same_thread": False}}
        if db_url in IN_MEMORY_SQLITE_URLS:
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


def _redact(db_url: str) -> str:
    """Drop the credentials part of a URL before it is logged."""
    return db_url.split("@")[-1] if "@" in db_url else db_url


class DatabaseConnection:
    """
    Owns the engine and hands out transactional sessions.

    Example:
        >>> db = DatabaseConnection("sqlite://")
        >>> with db.get_session() as session:
        ...     session.execute(text("SELECT 1")).scalar()
        1
    """

    def __init__(self, connection_url: Optional[str] = None):
        """
        Args:
            connection_url: SQLAlchemy URL. Falls back to DATABASE_URL.
        """
        db_url = connection_url or get_settings().database_url
        self.url = db_url

        self.engine = create_engine(db_url, echo=False, **_engine_kwargs(db_url))

        # Records are mapped to pydantic models after commit
        self._session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        logger.info(f"Family store ready: {_redact(db_url)}")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Yield a session that commits when the block exits cleanly.

        Any SQLAlchemy error rolls the transaction back and is re-raised
        so the API layer can answer with a 500.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise
        finally:
            session.close()

    def check_connection(self) -> bool:
        """Run a trivial query; False when the store cannot be reached."""
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Family store unreachable ({_redact(self.url)}): {e}")
            return False

    def close(self):
        self.engine.dispose()
        logger.info("Family store connections released")


_db_connection: DatabaseConnection | None = None


def get_database() -> DatabaseConnection:
    """Shared connection, created on first use rather than at import."""
    global _db_connection
    if _db_connection is None:
        _db_connection = DatabaseConnection()
    return _db_connection
