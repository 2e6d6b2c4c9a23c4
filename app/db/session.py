# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Database session management for passport registry persistence.

The engine is created lazily from ``DATABASE_URL`` so that importing this
module does not require a database when persistence is disabled.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

log = logging.getLogger("passport_registry.db")

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_db_engine(url: str) -> Engine:
    """Create an engine with pool settings appropriate to the backend."""
    if url.startswith("sqlite"):
        from sqlalchemy.pool import StaticPool

        engine_kwargs = {
            "echo": False,
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
        log.info("Passport registry using SQLite database (local development mode)")
    else:
        engine_kwargs = {
            "echo": False,
            "pool_pre_ping": True,
            "pool_size": 3,
            "max_overflow": 5,
            "pool_recycle": 1800,
        }
        log.info("Passport registry using PostgreSQL database (production mode)")

    engine = create_engine(url, **engine_kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return engine


def configure(url: str) -> Engine:
    """Bind the module-level engine and session factory to ``url``."""
    global _engine, _session_factory
    _engine = create_db_engine(url)
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        from app.config import DATABASE_URL

        if not DATABASE_URL:
            raise RuntimeError("Persistence is disabled: PASSPORT_REGISTRY_DATABASE_URL is not set")
        configure(DATABASE_URL)
    return _engine


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for database sessions; commits on success."""
    get_engine()
    db = _session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_database() -> None:
    """Create all tables idempotently."""
    from app.db.models import Base

    engine = get_engine()
    url = str(engine.url)
    if url.startswith("sqlite:///"):
        db_path = url.replace("sqlite:///", "")
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    Base.metadata.create_all(bind=engine)
    log.info("Passport registry tables created successfully")


def reset_database() -> None:
    """Dispose the engine and forget the session factory. Intended for tests."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
