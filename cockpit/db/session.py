"""
Database wiring.

The engine (and its bounded connection pool) is owned by a `Database` object
created in the application lifespan and disposed at shutdown (see
`cockpit/main.py`). Routes reach it only through the `get_db` and
`get_session_factory` dependencies, which tests override.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, TypeVar

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cockpit.core.config import Settings

_LOG = logging.getLogger("cockpit.db")

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


class TransientDatabaseError(RuntimeError):
    pass


def _engine_kwargs(cfg: Settings) -> dict:
    if cfg.DATABASE_URL.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": max(int(cfg.DB_POOL_SIZE), 1),
        "max_overflow": max(int(cfg.DB_MAX_OVERFLOW), 0),
        "pool_timeout": max(int(cfg.DB_POOL_TIMEOUT), 1),
        "pool_recycle": int(cfg.DB_POOL_RECYCLE_SECONDS),
        "pool_pre_ping": True,
    }


class Database:
    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "Database":
        return cls(create_engine(cfg.DATABASE_URL, **_engine_kwargs(cfg)))

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialized. It is created in the application lifespan.")
    return database


def get_session_factory(request: Request) -> Callable[[], Session]:
    return get_database(request).session_factory


def get_db(request: Request) -> Iterator[Session]:
    db = get_database(request).session_factory()
    try:
        yield db
    finally:
        db.close()


def _is_transient(exc: DBAPIError) -> bool:
    return isinstance(exc, OperationalError) or bool(exc.connection_invalidated)


def run_with_retry(
    db: Session,
    operation: Callable[[Session], T],
    *,
    attempts: int,
    delay_seconds: float,
) -> T:
    """
    Run `operation(db)`, retrying transient database failures.

    Waits `delay_seconds * attempt` between attempts (linear backoff) and
    raises `TransientDatabaseError` once `attempts` are exhausted. Errors that
    are not transient propagate on the first failure.
    """
    attempts = max(int(attempts), 1)
    last_error: DBAPIError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return operation(db)
        except DBAPIError as exc:
            if not _is_transient(exc):
                raise
            last_error = exc
            db.rollback()
            _LOG.warning("database query failed (attempt %s/%s): %s", attempt, attempts, exc.orig)
            if attempt < attempts and delay_seconds > 0:
                time.sleep(delay_seconds * attempt)
    raise TransientDatabaseError(f"Database query failed after {attempts} attempts") from last_error
