"""Database engine configuration for the SQL-backed realtime tree."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def make_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite is pinned to a single connection."""
    if url in {"sqlite://", "sqlite:///:memory:"}:
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, echo=echo)
    return create_engine(url, pool_pre_ping=True, echo=echo)


def make_sessionmaker(engine: Engine) -> sessionmaker:
    """Return a session factory bound to ``engine``."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create all database tables."""
    # Ensure model modules are imported so that metadata is populated.
    import relay_chat.models  # noqa: F401

    Base.metadata.create_all(bind=engine)

