from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from sqlalchemy.engine import Engine

from .config import BACKUP_PREFIX
from .errors import StorageFailure
from .schemas import BackupInfo

# purpose: point-in-time copies of the database file
# status: active

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".db"


def backup_name(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"{BACKUP_PREFIX}{now:%Y%m%d_%H%M%S}{BACKUP_SUFFIX}"


def _info(path: Path) -> BackupInfo:
    stat = path.stat()
    return BackupInfo(
        file_name=path.name,
        path=str(path),
        size_bytes=stat.st_size,
        created_at=datetime.fromtimestamp(stat.st_mtime),
    )


def _target(backup_dir: Path, destination: str | Path | None, name: str) -> Path:
    if destination:
        dest = Path(destination)
        return dest / name if dest.is_dir() else dest
    backup_dir.mkdir(parents=True, exist_ok=True)
    target = backup_dir / name
    counter = 1
    while target.exists():
        target = backup_dir / f"{name[: -len(BACKUP_SUFFIX)]}_{counter}{BACKUP_SUFFIX}"
        counter += 1
    return target


def checkpoint(engine: Engine) -> None:
    """Fold the write-ahead log into the main file.

    Must run with no transaction open on the shared connection.
    """
    with engine.connect() as connection:
        connection.connection.driver_connection.execute(
            "PRAGMA wal_checkpoint(TRUNCATE)"
        ).fetchall()


def create_backup(
    engine: Engine,
    db_path: Path | None,
    backup_dir: Path,
    destination: str | Path | None = None,
    now: datetime | None = None,
) -> BackupInfo:
    if db_path is None or not Path(db_path).exists():
        raise StorageFailure("Database file not found (using in-memory database)")
    checkpoint(engine)
    target = _target(Path(backup_dir), destination, backup_name(now))
    try:
        shutil.copy2(db_path, target)
    except OSError as exc:
        raise StorageFailure(f"Failed to copy database: {exc}") from exc
    logger.info("Database backup written to %s", target)
    return _info(target)


def list_backups(backup_dir: Path) -> list[BackupInfo]:
    backup_dir = Path(backup_dir)
    if not backup_dir.is_dir():
        return []
    found = [
        _info(path)
        for path in backup_dir.iterdir()
        if path.is_file()
        and path.name.startswith(BACKUP_PREFIX)
        and path.name.endswith(BACKUP_SUFFIX)
    ]
    found.sort(key=lambda info: (info.created_at, info.file_name), reverse=True)
    return found
