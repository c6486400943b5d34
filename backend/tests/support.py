import os
import sys
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite://")
sys.path.append(str(Path(__file__).resolve().parents[1]))

from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from interview_pipeline.db import init_db, make_engine  # noqa: E402


def make_session_factory():
    # One shared connection so every session sees the same in-memory database.
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


def auth_headers(user_id: str = "user_123", email: str = "a@b.com") -> dict:
    return {"X-User-Id": user_id, "X-User-Email": email, "X-User-Name": "A B"}
