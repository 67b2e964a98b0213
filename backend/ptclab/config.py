from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

# purpose: resolve on-disk locations and runtime knobs from the environment
# status: active

APP_DIR_NAME = "PTCLab"
DEFAULT_DB_NAME = "ptclab.db"
BACKUP_DIR_NAME = "backups"
BACKUP_PREFIX = "ptclab_backup_"


def default_data_dir() -> Path:
    """Per-user application data directory for the current platform."""
    override = os.getenv("PTCLAB_DATA_DIR")
    if override:
        return Path(override)
    if sys.platform.startswith("win"):
        appdata = os.getenv("APPDATA")
        if appdata:
            return Path(appdata) / APP_DIR_NAME
    return Path.home() / f".{APP_DIR_NAME.lower()}"


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    data_dir: Path = field(default_factory=default_data_dir)
    db_name: str = field(default_factory=lambda: os.getenv("PTCLAB_DB_NAME", DEFAULT_DB_NAME))
    busy_timeout_ms: int = field(
        default_factory=lambda: int(os.getenv("PTCLAB_BUSY_TIMEOUT_MS", "5000"))
    )
    session_hours: int = field(
        default_factory=lambda: int(os.getenv("PTCLAB_SESSION_HOURS", "24"))
    )
    log_level: str = field(default_factory=lambda: os.getenv("PTCLAB_LOG_LEVEL", "INFO"))
    allow_memory_fallback: bool = field(
        default_factory=lambda: _flag("PTCLAB_ALLOW_MEMORY_FALLBACK")
    )

    @property
    def db_path(self) -> Path:
        return Path(self.data_dir) / self.db_name

    @property
    def backup_dir(self) -> Path:
        return Path(self.data_dir) / BACKUP_DIR_NAME


def get_settings() -> Settings:
    return Settings()
