from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import Table, create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker

from .config import get_settings
from .models import Base, Company, Interview, User, new_calendar_token

logger = logging.getLogger(__name__)

settings = get_settings()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def make_engine(database_url: str, **kwargs: Any) -> Engine:
    """Engine for ``database_url``; SQLite files get their parent directory created."""
    if not _is_sqlite(database_url):
        return create_engine(database_url, **kwargs)
    database = make_url(database_url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, connect_args={"check_same_thread": False}, **kwargs)


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _add_missing_columns(bind: Engine, table: Table) -> None:
    # Databases created by older releases lack newer nullable columns.
    present = {column["name"] for column in inspect(bind).get_columns(table.name)}
    missing = [column for column in table.columns if column.name not in present]
    if not present or not missing:
        return
    with bind.begin() as conn:
        for column in missing:
            ddl_type = column.type.compile(dialect=bind.dialect)
            conn.execute(text(f'ALTER TABLE {table.name} ADD COLUMN "{column.name}" {ddl_type}'))
            logger.info("Added column %s.%s", table.name, column.name)


def _backfill_calendar_tokens(bind: Engine) -> None:
    with bind.begin() as conn:
        user_ids = conn.execute(
            text("SELECT id FROM users WHERE calendar_token IS NULL OR calendar_token = ''")
        ).scalars().all()
        for user_id in user_ids:
            conn.execute(
                text("UPDATE users SET calendar_token = :token WHERE id = :id"),
                {"token": new_calendar_token(), "id": user_id},
            )
    if user_ids:
        logger.info("Issued calendar tokens for %d existing users", len(user_ids))


def init_db(bind: Engine | None = None) -> None:
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    for model in (User, Company, Interview):
        _add_missing_columns(bind, model.__table__)
    _backfill_calendar_tokens(bind)
