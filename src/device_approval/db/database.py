"""Database engine and session management for the device store."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from device_approval.db.models import Base

_engines: dict[str, Engine] = {}
_session_factories: dict[str, scoped_session[Session]] = {}


def get_engine(database_url: str, isolation_level: str | None = None) -> Engine:
    """Get or create the database engine for a URL."""
    engine = _engines.get(database_url)
    if engine is None:
        # Handle SQLite URL for file path
        if database_url.startswith("sqlite:///"):
            connect_args = {"check_same_thread": False}
        else:
            connect_args = {}

        options = {}
        if isolation_level:
            options["isolation_level"] = isolation_level

        engine = create_engine(
            database_url,
            connect_args=connect_args,
            pool_pre_ping=True,
            **options,
        )
        _engines[database_url] = engine
    return engine


def get_session(database_url: str, isolation_level: str | None = None) -> scoped_session[Session]:
    """Get a thread-safe scoped session."""
    session_factory = _session_factories.get(database_url)
    if session_factory is None:
        engine = get_engine(database_url, isolation_level)
        session_factory = scoped_session(sessionmaker(bind=engine, expire_on_commit=False))
        _session_factories[database_url] = session_factory
    return session_factory


def init_db(database_url: str, isolation_level: str | None = None):
    """Initialize the database, creating tables if they don't exist."""
    engine = get_engine(database_url, isolation_level)
    Base.metadata.create_all(engine)


def dispose(database_url: str):
    """Drop the cached session factory and engine for a URL."""
    session_factory = _session_factories.pop(database_url, None)
    if session_factory is not None:
        session_factory.remove()
    engine = _engines.pop(database_url, None)
    if engine is not None:
        engine.dispose()
