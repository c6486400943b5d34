from __future__ import annotations

import os
import platform
import re
from dataclasses import dataclass
from pathlib import Path

from .version import APP_NAME

DB_FILENAME = "interviews.db"
GUEST_STORE_FILENAME = "guest_interviews_v1.json"


@dataclass(frozen=True)
class StoragePaths:
    base_dir: Path
    db_path: Path
    guest_store_path: Path


def _dir_name(app_name: str) -> str:
    return re.sub(r"[\\/\s]+", "-", app_name.strip()) or "interview-pipeline"


def _platform_data_root() -> Path:
    system = platform.system()
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support"
    if system == "Windows":
        return Path(os.getenv("APPDATA") or Path.home() / "AppData" / "Roaming")
    return Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")


def data_dir(app_name: str = APP_NAME) -> Path:
    """Per-user directory holding the SQLite file and the guest store; APP_DATA_DIR overrides it."""
    override = os.getenv("APP_DATA_DIR")
    if override:
        return Path(override).expanduser().resolve()
    return _platform_data_root() / _dir_name(app_name)


def get_storage_paths(app_name: str = APP_NAME) -> StoragePaths:
    base_dir = data_dir(app_name)
    return StoragePaths(
        base_dir=base_dir,
        db_path=base_dir / DB_FILENAME,
        guest_store_path=base_dir / GUEST_STORE_FILENAME,
    )
