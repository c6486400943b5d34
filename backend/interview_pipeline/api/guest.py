from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import current_user
from ..config import get_settings
from ..crud import create_interview
from ..db import get_db
from ..models import User
from ..schemas import GuestInterview, GuestStorage, GuestSyncOut
from ..services.guest_sync import guest_entry_to_payload, guest_view, replay_entries, server_view

router = APIRouter(prefix="/api")


@router.post("/guest-sync", response_model=GuestSyncOut)
def guest_sync_api(
    payload: GuestStorage,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
) -> GuestSyncOut:
    """Replay signed-out entries in creation order, stopping at the first one that fails."""
    enforce_terminal = get_settings().enforce_terminal_outcomes

    def _replay(entry: GuestInterview):
        try:
            return create_interview(
                db, user, guest_entry_to_payload(entry), enforce_terminal=enforce_terminal
            )
        except SQLAlchemyError:
            db.rollback()
            raise

    result = replay_entries(payload.interviews, _replay)
    return GuestSyncOut(
        created=[server_view(interview) for interview in result.created],
        remaining=[guest_view(entry) for entry in result.remaining],
        error=result.error,
    )
