"""Database configuration and session management."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tripsync.config import Settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


logger = logging.getLogger(__name__)


def create_database_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for ``database_url``.

    In-memory SQLite databases share a single connection so every session sees
    the same schema and rows. File-backed SQLite databases take the write lock
    when a transaction begins, see :func:`_begin_sqlite_immediately`.
    """

    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            return create_engine(
                database_url, connect_args=connect_args, poolclass=StaticPool
            )
        engine = create_engine(database_url, connect_args=connect_args)
        _begin_sqlite_immediately(engine)
        return engine
    return create_engine(database_url, pool_pre_ping=True)


def _begin_sqlite_immediately(engine: Engine) -> None:
    """Open every transaction on ``engine`` with ``BEGIN IMMEDIATE``.

    SQLite ignores ``FOR UPDATE`` and pysqlite only emits ``BEGIN`` before the
    first write, so a transaction that reads a poll and then writes a vote would
    otherwise hold no lock in between. With this hook the reserved lock is taken
    up front and such transactions run one after another.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_from_settings(settings: Settings) -> Engine:
    """Build the engine configured by ``settings``."""

    return create_database_engine(settings.database_url)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``engine``."""

    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def initialize_database(engine: Engine) -> None:
    """Ensure all ORM models have corresponding database tables."""

    from tripsync.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.debug("Database schema ensured for %s", engine.url.render_as_string(hide_password=True))


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope: commit on success, roll back on error."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "Base",
    "build_session_factory",
    "create_database_engine",
    "create_engine_from_settings",
    "initialize_database",
    "session_scope",
]
