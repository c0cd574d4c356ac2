"""Database engine setup for SQLite with WAL mode.

WAL lets readers proceed while a writer holds the lock; writers wait up
to ``busy_timeout`` seconds before the driver reports the database as
locked. SQLAlchemy Core (not ORM): each table call is one short
transaction and there is no identity map to keep coherent.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from imgroute.infrastructure.database.schema import metadata

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT = 5.0


def create_db_engine(db_path: Path, *, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> Engine:
    """Create a SQLite engine with WAL mode."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": busy_timeout, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(db_path: Path, *, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> Engine:
    """Create the database file's directory and schema at *db_path*.

    Idempotent: safe to call on an existing database.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path, busy_timeout=busy_timeout)
    metadata.create_all(engine)
    logger.debug("Database ready at %s", db_path)
    return engine
