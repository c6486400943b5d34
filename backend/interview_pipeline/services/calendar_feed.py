from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ..models import Interview, User
from ..utils import build_ics
from .lifecycle import InterviewOutcome

EVENT_DURATION = timedelta(hours=1)
REMINDER = {"description": "Interview in 30 minutes", "trigger": "-PT30M"}
UID_DOMAIN = "interviews.app"


def list_feed_interviews(db: Session, user_id: int) -> List[Interview]:
    return (
        db.query(Interview)
        .options(
            selectinload(Interview.company),
            selectinload(Interview.stage),
        )
        .filter(
            Interview.user_id == user_id,
            Interview.outcome == InterviewOutcome.SCHEDULED,
            or_(Interview.date.is_not(None), Interview.deadline.is_not(None)),
        )
        .order_by(
            Interview.date.asc().nulls_last(),
            Interview.deadline.asc().nulls_last(),
            Interview.id.asc(),
        )
        .all()
    )


def _description(interview: Interview) -> str:
    lines = [f"Stage: {interview.stage.stage}"]
    if interview.interviewer:
        lines.append(f"Interviewer: {interview.interviewer}")
    if interview.notes:
        lines.append(f"Notes: {interview.notes}")
    return "\n".join(lines)


def interview_to_event(interview: Interview) -> Optional[Dict[str, Any]]:
    """Deadlines become all-day events without a reminder; dated rows get a one-hour slot."""
    event: Dict[str, Any] = {
        "uid": f"interview-{interview.id}@{UID_DOMAIN}",
        "summary": f"Interview: {interview.job_title} - "
        f"{interview.client_company or interview.company.name}",
        "description": _description(interview),
        "location": interview.link,
        "confirmed": interview.outcome == InterviewOutcome.SCHEDULED,
    }
    if interview.deadline is not None:
        event.update(start=interview.deadline, end=interview.deadline, all_day=True, alarm=None)
    elif interview.date is not None:
        event.update(
            start=interview.date,
            end=interview.date + EVENT_DURATION,
            all_day=False,
            alarm=REMINDER,
        )
    else:
        return None
    return event


def build_events(interviews: Iterable[Interview]) -> List[Dict[str, Any]]:
    events = []
    for interview in interviews:
        event = interview_to_event(interview)
        if event is not None:
            events.append(event)
    return events


def build_feed_bytes(db: Session, user: User, now: Optional[datetime] = None) -> bytes:
    return build_ics(build_events(list_feed_interviews(db, user.id)), now=now)
