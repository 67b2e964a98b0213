from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .database import create_db_engine, make_sessionmaker
from .errors import MigrationFailure
from .migrations import migrate_engine
from .seed import seed_defaults

# purpose: own the database engine and the request lock for one running process
# status: active

logger = logging.getLogger(__name__)


class AppState:
    """The database resource plus the lock that serialises every request."""

    def __init__(self, engine: Engine, settings: Settings, db_path: Path | None = None):
        self.engine = engine
        self.settings = settings
        self.db_path = db_path
        self.degraded = db_path is None
        self._sessions = make_sessionmaker(engine)
        self._lock = threading.Lock()

    @classmethod
    def in_memory(cls, settings: Settings | None = None) -> "AppState":
        settings = settings or get_settings()
        state = cls(create_db_engine(None, settings.busy_timeout_ms), settings)
        state.prepare()
        return state

    def prepare(self) -> int:
        version = migrate_engine(self.engine)
        with self.session() as db:
            seed_defaults(db)
        return version

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Hold the request lock and an ORM session for one unit of work."""
        with self._lock:
            db = self._sessions()
            try:
                yield db
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    def close(self) -> None:
        self.engine.dispose()


def bootstrap(settings: Settings | None = None) -> AppState:
    """Open the on-disk database, migrate and seed it.

    A migration failure stops startup unless the in-memory fallback was
    explicitly enabled.
    """
    settings = settings or get_settings()
    data_dir = Path(settings.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = settings.db_path
    engine = create_db_engine(db_path, settings.busy_timeout_ms)
    state = AppState(engine, settings, db_path)
    try:
        version = state.prepare()
    except MigrationFailure:
        state.close()
        if not settings.allow_memory_fallback:
            raise
        logger.error("Migrations failed for %s; continuing with an in-memory database", db_path)
        return AppState.in_memory(settings)
    logger.info("Database ready at %s (schema version %s)", db_path, version)
    return state
