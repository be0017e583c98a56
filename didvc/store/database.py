from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from didvc.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def create_session_factory(database_url: str) -> sessionmaker:
    """Creates an engine for `database_url`, creates missing tables, and returns a session factory.

    An in-memory SQLite URL (`sqlite://`) keeps a single shared connection so
    every session, from any thread, sees the same credentials for the life of
    the process.
    """
    url = make_url(database_url)
    engine_kwargs = {}
    if url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **engine_kwargs)
    create_tables(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine):
    """Creates all database tables defined by models inheriting from Base."""
    # Registers StoredCredentialModel on Base.metadata.
    from didvc.store import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Credential store tables created (if they didn't exist) at {engine.url.render_as_string(hide_password=True)}")
