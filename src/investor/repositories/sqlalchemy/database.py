"""Database connection and session management."""

from typing import Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from investor.config.settings import get_settings

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL.

    SQLite connections are shared across the request threadpool; an
    in-memory database is pinned to a single connection so every session
    sees the same tables.
    """
    kwargs: dict = {"echo": False}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to an engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Optional[Engine] = None) -> None:
    """Initialize database tables."""
    from investor.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=engine or build_engine(get_settings().database_url))
