from __future__ import annotations

import os
from dataclasses import dataclass

from .storage import get_storage_paths


@dataclass(frozen=True)
class Settings:
    database_url: str
    cors_origins: list[str]
    public_base_url: str
    auth_user_header: str
    auth_email_header: str
    auth_name_header: str
    enforce_terminal_outcomes: bool
    log_level: str


_storage_paths = get_storage_paths()
DEFAULT_SQLITE_URL = f"sqlite:///{_storage_paths.db_path.as_posix()}"


def _parse_bool(value: str | None, default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def get_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL", DEFAULT_SQLITE_URL)
    cors_raw = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )
    cors_origins = [origin.strip() for origin in cors_raw.split(",") if origin.strip()]
    public_base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
    return Settings(
        database_url=database_url,
        cors_origins=cors_origins,
        public_base_url=public_base_url,
        auth_user_header=os.getenv("AUTH_USER_HEADER", "X-User-Id"),
        auth_email_header=os.getenv("AUTH_EMAIL_HEADER", "X-User-Email"),
        auth_name_header=os.getenv("AUTH_NAME_HEADER", "X-User-Name"),
        enforce_terminal_outcomes=_parse_bool(os.getenv("ENFORCE_TERMINAL_OUTCOMES")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
