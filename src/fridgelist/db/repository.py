"""Database engine and session management."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from fridgelist.db.models import Base

logger = logging.getLogger(__name__)


def create_cache_engine(database_path: Path) -> Engine:
    """Return a SQLAlchemy engine for the SQLite cache, creating the schema if needed."""

    database_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{database_path}",
        future=True,
        echo=False,
        connect_args={"check_same_thread": False},
    )
    try:
        Base.metadata.create_all(engine)
    except OperationalError as exc:
        if "already exists" in str(exc).lower():
            logger.debug("Cache schema already initialized: %s", exc)
        else:
            raise
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Context manager yielding a session with automatic commit/rollback."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = ["create_cache_engine", "create_session_factory", "session_scope"]
