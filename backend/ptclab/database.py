from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# purpose: engine factory and declarative base for the single local database file
# status: active

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp used for every created_at/updated_at column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def create_db_engine(path: Path | str | None = None, busy_timeout_ms: int = 5000) -> Engine:
    """Open one long-lived connection to ``path`` (or an in-memory database).

    The pysqlite driver's own transaction handling is switched off so that
    SQLAlchemy emits BEGIN itself; DDL then participates in transactions
    and foreign-key pragmas can be toggled between them.
    """
    url = f"sqlite:///{path}" if path else "sqlite://"
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": busy_timeout_ms / 1000},
        poolclass=StaticPool,
    )
    on_disk = path is not None

    @event.listens_for(engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        if on_disk:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
