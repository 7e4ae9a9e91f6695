"""
Database connection and session management.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from subscription_feed.config import get_config
from subscription_feed.logger import get_logger
from subscription_feed.models import Base

if TYPE_CHECKING:
    from subscription_feed.config import DatabaseConfig

logger = get_logger(__name__)

# Global engine and session factory
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def build_url(path: str) -> str:
    """Build a SQLite URL from a configured path.

    Args:
        path: File path, ``:memory:`` or an already complete ``sqlite://`` URL

    Returns:
        SQLAlchemy URL string
    """
    if path.startswith("sqlite://"):
        return path
    if path == ":memory:":
        return "sqlite://"

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def create_sqlite_engine(db_config: "DatabaseConfig") -> Engine:
    """Create a SQLite engine for the given configuration.

    In-memory databases share one connection so every session sees the same
    tables.

    Args:
        db_config: Database configuration

    Returns:
        SQLAlchemy Engine instance
    """
    url = build_url(db_config.path)
    engine_kwargs: dict = {
        "echo": db_config.echo,
        "connect_args": {"check_same_thread": False, "timeout": 30},
    }
    if url == "sqlite://":
        engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **engine_kwargs)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def get_engine() -> Engine:
    """Get or create the global database engine.

    Returns:
        SQLAlchemy Engine instance
    """
    global _engine

    if _engine is None:
        _engine = create_sqlite_engine(get_config().database)

    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the global session factory.

    Returns:
        SQLAlchemy sessionmaker instance
    """
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )

    return _session_factory


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """Get a database session.

    Yields:
        SQLAlchemy Session instance

    Example:
        >>> with get_db() as session:
        ...     subscriptions = session.query(SubscriptionModel).all()
    """
    session = get_session_factory()()

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(drop_all: bool = False) -> None:
    """Create all tables on the global engine.

    Args:
        drop_all: If True, drop all tables before creating them (DANGEROUS!)
    """
    engine = get_engine()

    if drop_all:
        logger.warning("Dropping all tables - data will be lost!")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)


def close_db() -> None:
    """Close the database connection and dispose of the engine."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _session_factory = None


class DatabaseManager:
    """Database manager for context-managed database operations."""

    def __init__(self, db_path: Optional[str] = None, db_config: Optional["DatabaseConfig"] = None):
        """Initialize database manager.

        Args:
            db_path: Optional SQLite path (``:memory:`` for tests)
            db_config: Optional custom database configuration

        Note:
            If neither db_path nor db_config is provided, uses the global config.
        """
        self._custom_db_path = db_path
        self._custom_db_config = db_config
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        """Get the database engine."""
        if self._engine is None:
            if self._custom_db_path:
                from subscription_feed.config import DatabaseConfig

                db_config = DatabaseConfig(path=self._custom_db_path, echo=False)
                self._engine = create_sqlite_engine(db_config)
            elif self._custom_db_config:
                self._engine = create_sqlite_engine(self._custom_db_config)
            else:
                self._engine = get_engine()

        return self._engine

    def init_db(self, drop_all: bool = False) -> None:
        """Initialize database tables.

        Args:
            drop_all: If True, drop existing tables first
        """
        if drop_all:
            Base.metadata.drop_all(bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session.

        Yields:
            SQLAlchemy Session instance
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
                bind=self.engine,
            )
        session = self._session_factory()

        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._session_factory = None

    def __enter__(self) -> "DatabaseManager":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
