"""
db/session.py

Engine and sessions for the feedback store.

Nothing connects at import time; the engine is built on first use so tests
and the dry-run CLI never need a database.
"""

from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import get_database_settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    settings = get_database_settings()
    return create_engine(settings.url, **settings.engine_options())


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    # Repositories commit per record and read ids back after commit.
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def SessionLocal() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for scripts and startup checks; rolled back if the block raises.
    """

    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    with session_scope() as session:
        yield session
