from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..auth import current_user
from ..config import get_settings
from ..crud import get_user_by_calendar_token, regenerate_calendar_token
from ..db import get_db
from ..models import User
from ..schemas import CalendarSettingsOut
from ..services.calendar_feed import build_feed_bytes

router = APIRouter(prefix="/api")

FEED_HEADERS = {
    "Content-Disposition": 'inline; filename="interviews.ics"',
    "Cache-Control": "no-cache, no-store, must-revalidate",
}


def _settings_out(user: User) -> CalendarSettingsOut:
    base_url = get_settings().public_base_url
    return CalendarSettingsOut(
        calendar_token=user.calendar_token,
        calendar_url=f"{base_url}/api/calendar/{user.calendar_token}",
    )


@router.get("/calendar-settings", response_model=CalendarSettingsOut)
def get_calendar_settings_api(user: User = Depends(current_user)) -> CalendarSettingsOut:
    return _settings_out(user)


@router.post("/calendar-settings", response_model=CalendarSettingsOut)
def regenerate_calendar_settings_api(
    user: User = Depends(current_user), db: Session = Depends(get_db)
) -> CalendarSettingsOut:
    return _settings_out(regenerate_calendar_token(db, user))


@router.get("/calendar/{token}")
def calendar_feed_api(token: str, db: Session = Depends(get_db)) -> Response:
    # Possession of the token is the only credential for this route.
    user = get_user_by_calendar_token(db, token)
    if not user:
        raise HTTPException(status_code=404, detail="Calendar not found")
    return Response(
        content=build_feed_bytes(db, user),
        media_type="text/calendar; charset=utf-8",
        headers=FEED_HEADERS,
    )
