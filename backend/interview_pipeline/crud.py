from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Company, Interview, Stage, StageMethod, User, new_calendar_token
from .services.lifecycle import (
    InterviewOutcome,
    check_transition,
    initial_outcome,
    is_technical_test,
    mark_passed,
    place_schedule,
)
from .services.method_inference import infer_method

logger = logging.getLogger(__name__)

T = TypeVar("T")

REQUIRED_CREATE_FIELDS = (("stage", "stage"), ("company_name", "companyName"), ("job_title", "jobTitle"))


class InterviewNotFound(LookupError):
    pass


def _find_or_create(db: Session, find: Callable[[], Optional[T]], build: Callable[[], T], label: str) -> T:
    existing = find()
    if existing is not None:
        return existing
    row = build()
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Someone else created it between our read and write; use theirs.
        db.rollback()
        logger.info("Concurrent create of %s detected, re-reading existing row", label)
        existing = find()
        if existing is None:
            raise
        return existing
    db.refresh(row)
    return row


def get_or_create_user(
    db: Session, external_id: str, email: Optional[str] = None, name: Optional[str] = None
) -> User:
    return _find_or_create(
        db,
        lambda: db.query(User).filter(User.external_id == external_id).first(),
        lambda: User(
            external_id=external_id,
            email=email or f"{external_id}@example.com",
            name=name or None,
            calendar_token=new_calendar_token(),
            created_at=datetime.utcnow(),
        ),
        f"user {external_id!r}",
    )


def get_or_create_company(db: Session, user_id: int, name: str) -> Company:
    return _find_or_create(
        db,
        lambda: db.query(Company).filter(Company.user_id == user_id, Company.name == name).first(),
        lambda: Company(user_id=user_id, name=name),
        f"company {name!r}",
    )


def get_or_create_stage(db: Session, label: str) -> Stage:
    return _find_or_create(
        db,
        lambda: db.query(Stage).filter(Stage.stage == label).first(),
        lambda: Stage(stage=label),
        f"stage {label!r}",
    )


def get_or_create_stage_method(db: Session, label: str) -> StageMethod:
    # Lookup ignores case so "zoom" reuses "Zoom"; creation keeps the given casing.
    return _find_or_create(
        db,
        lambda: db.query(StageMethod)
        .filter(func.lower(StageMethod.method) == label.lower())
        .order_by(StageMethod.id.asc())
        .first(),
        lambda: StageMethod(method=label),
        f"stage method {label!r}",
    )


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_create_payload(payload: Dict[str, Any]) -> List[str]:
    return [wire for key, wire in REQUIRED_CREATE_FIELDS if not _clean(payload.get(key))]


def _compose_metadata(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    metadata: Dict[str, Any] = {}
    if _clean(payload.get("job_posting_link")):
        metadata["jobListing"] = payload["job_posting_link"].strip()
    if payload.get("location_type") in ("phone", "link"):
        metadata["location"] = payload["location_type"]
    return metadata or None


def _build_interview(
    db: Session, user: User, payload: Dict[str, Any], now: Optional[datetime] = None
) -> Interview:
    missing = validate_create_payload(payload)
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")

    stage_label = _clean(payload["stage"])
    company = get_or_create_company(db, user.id, _clean(payload["company_name"]))
    stage = get_or_create_stage(db, stage_label)
    method = get_or_create_stage_method(
        db, infer_method(payload.get("location_type"), _clean(payload.get("interview_link")))
    )
    schedule = place_schedule(
        stage_label,
        payload.get("date"),
        payload.get("deadline"),
        interviewer=_clean(payload.get("interviewer")),
        link=_clean(payload.get("interview_link")),
        now=now,
    )
    return Interview(
        user_id=user.id,
        company_id=company.id,
        client_company=_clean(payload.get("client_company")),
        job_title=_clean(payload["job_title"]),
        interviewer=schedule.interviewer,
        notes=_clean(payload.get("notes")),
        metadata_json=_compose_metadata(payload),
        link=schedule.link,
        date=schedule.date,
        deadline=schedule.deadline,
        stage_id=stage.id,
        stage_method_id=method.id,
        outcome=initial_outcome(stage_label),
        application_date=datetime.utcnow(),
    )


def create_interview(
    db: Session,
    user: User,
    payload: Dict[str, Any],
    previous_interview_id: Optional[int] = None,
    enforce_terminal: bool = True,
    now: Optional[datetime] = None,
) -> Interview:
    """Create an interview row; with a predecessor, also mark it PASSED in the same commit."""
    interview = _build_interview(db, user, payload, now=now)

    if previous_interview_id is not None:
        previous = get_interview_for_user(db, user.id, previous_interview_id)
        if previous is None:
            raise InterviewNotFound(f"Interview {previous_interview_id} not found")
        previous.outcome = mark_passed(previous.outcome, enforce_terminal)
        db.add(previous)

    db.add(interview)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(interview)
    return interview


def get_interview_for_user(db: Session, user_id: int, interview_id: int) -> Optional[Interview]:
    return (
        db.query(Interview)
        .filter(Interview.id == interview_id, Interview.user_id == user_id)
        .first()
    )


def update_interview(
    db: Session, interview: Interview, payload: Dict[str, Any], enforce_terminal: bool = True
) -> Interview:
    """Write only the fields present in ``payload``; everything else is left alone.

    Every check runs before the row is touched, so a rejected edit writes nothing.
    """
    for key in ("date", "deadline", "outcome", "stage_id"):
        if key in payload and payload[key] is None:
            raise ValueError(f"{key} cannot be cleared")

    target: Optional[InterviewOutcome] = None
    if "outcome" in payload:
        target = InterviewOutcome(payload["outcome"])
        check_transition(interview.outcome, target, enforce_terminal)

    stage: Optional[Stage] = None
    if "stage_id" in payload:
        stage = db.get(Stage, payload["stage_id"])
        if stage is None:
            raise ValueError(f"Unknown stageId: {payload['stage_id']}")

    method: Optional[StageMethod] = None
    if payload.get("stage_method_id") is not None:
        method = db.get(StageMethod, payload["stage_method_id"])
        if method is None:
            raise ValueError(f"Unknown stageMethodId: {payload['stage_method_id']}")

    if target is not None:
        interview.outcome = target
    for key in ("notes", "link", "interviewer", "client_company"):
        if key in payload:
            setattr(interview, key, _clean(payload[key]))
    if stage is not None:
        interview.stage = stage
    if "stage_method_id" in payload:
        interview.stage_method = method

    if "metadata" in payload or "job_posting_link" in payload:
        metadata = dict(interview.metadata_json or {})
        if "metadata" in payload:
            metadata = dict(payload["metadata"] or {})
        if "job_posting_link" in payload:
            listing = _clean(payload["job_posting_link"])
            if listing:
                metadata["jobListing"] = listing
            else:
                metadata.pop("jobListing", None)
        interview.metadata_json = metadata or None

    rescheduled = "date" in payload or "deadline" in payload or stage is not None
    if rescheduled or is_technical_test(interview.stage.stage):
        when: Optional[datetime] = payload.get("date", interview.date)
        deadline: Optional[date] = payload.get("deadline", interview.deadline)
        if "date" in payload and "deadline" not in payload:
            deadline = None
        if "deadline" in payload and "date" not in payload:
            when = None
        schedule = place_schedule(
            interview.stage.stage,
            when,
            deadline,
            interviewer=interview.interviewer,
            link=interview.link,
        )
        interview.date = schedule.date
        interview.deadline = schedule.deadline
        interview.interviewer = schedule.interviewer
        interview.link = schedule.link

    db.add(interview)
    db.commit()
    db.refresh(interview)
    return interview


def set_outcome(
    db: Session, interview: Interview, outcome: InterviewOutcome, enforce_terminal: bool = True
) -> Interview:
    check_transition(interview.outcome, outcome, enforce_terminal)
    interview.outcome = outcome
    db.add(interview)
    db.commit()
    db.refresh(interview)
    return interview


def list_companies(db: Session, user_id: int) -> List[Company]:
    return db.query(Company).filter(Company.user_id == user_id).order_by(Company.name.asc()).all()


def list_stages(db: Session) -> List[Stage]:
    return db.query(Stage).order_by(Stage.stage.asc()).all()


def list_stage_methods(db: Session) -> List[StageMethod]:
    return db.query(StageMethod).order_by(StageMethod.method.asc()).all()


def get_user_by_calendar_token(db: Session, token: str) -> Optional[User]:
    if not token:
        return None
    return db.query(User).filter(User.calendar_token == token).first()


def regenerate_calendar_token(db: Session, user: User) -> User:
    user.calendar_token = new_calendar_token()
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Calendar token regenerated for user %s", user.id)
    return user


def interview_to_dict(interview: Interview) -> Dict[str, Any]:
    return {
        "id": interview.id,
        "job_title": interview.job_title,
        "interviewer": interview.interviewer,
        "company": {"id": interview.company.id, "name": interview.company.name},
        "client_company": interview.client_company,
        "stage": {"id": interview.stage.id, "stage": interview.stage.stage},
        "stage_method": (
            {"id": interview.stage_method.id, "method": interview.stage_method.method}
            if interview.stage_method
            else None
        ),
        "application_date": interview.application_date,
        "date": interview.date,
        "deadline": interview.deadline,
        "outcome": interview.outcome,
        "notes": interview.notes,
        "metadata": interview.metadata_json,
        "link": interview.link,
    }
