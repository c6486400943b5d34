from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import current_user
from ..config import get_settings
from ..crud import (
    InterviewNotFound,
    create_interview,
    get_interview_for_user,
    interview_to_dict,
    set_outcome,
    update_interview,
)
from ..db import get_db
from ..models import Interview, User
from ..schemas import (
    InterviewCreate,
    InterviewOut,
    InterviewUpdate,
    OutcomeOut,
    OutcomeStat,
    OutcomeUpdate,
)
from ..services.interview_query import (
    DEFAULT_TAKE,
    InterviewFilters,
    count_by_outcome,
    query_interviews,
)
from ..services.lifecycle import InterviewOutcome, InvalidTransition, await_response, reject

router = APIRouter(prefix="/api")


def _enforce_terminal() -> bool:
    return get_settings().enforce_terminal_outcomes


def _to_out(interview: Interview) -> InterviewOut:
    return InterviewOut(**interview_to_dict(interview))


def _get_interview_or_404(db: Session, user: User, interview_id: int) -> Interview:
    interview = get_interview_for_user(db, user.id, interview_id)
    if not interview:
        raise HTTPException(status_code=404, detail="Interview not found")
    return interview


def _create(
    db: Session, user: User, payload: InterviewCreate, previous_interview_id: Optional[int] = None
) -> InterviewOut:
    data = payload.model_dump(exclude={"previous_interview_id"})
    previous_id = previous_interview_id or payload.previous_interview_id
    try:
        interview = create_interview(
            db, user, data, previous_interview_id=previous_id, enforce_terminal=_enforce_terminal()
        )
    except InterviewNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _to_out(interview)


@router.get("/interviews", response_model=List[InterviewOut])
def list_interviews_api(
    day: Optional[date] = Query(None, alias="date"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    include_past: Optional[bool] = Query(None, alias="includePast"),
    company_id: Optional[int] = Query(None, alias="companyId"),
    company_name: Optional[str] = Query(None, alias="company"),
    stage_id: Optional[int] = Query(None, alias="stageId"),
    stage_method_id: Optional[int] = Query(None, alias="stageMethodId"),
    outcomes: Optional[List[InterviewOutcome]] = Query(None, alias="outcome"),
    outcome_history: bool = Query(False, alias="outcomeHistory"),
    search: Optional[str] = Query(None, alias="q"),
    take: int = DEFAULT_TAKE,
    skip: int = 0,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
) -> List[InterviewOut]:
    filters = InterviewFilters(
        day=day,
        date_from=date_from,
        date_to=date_to,
        include_past=include_past,
        company_id=company_id,
        company_name=(company_name or "").strip() or None,
        stage_id=stage_id,
        stage_method_id=stage_method_id,
        outcomes=tuple(outcomes or ()),
        outcome_history=outcome_history,
        q=search,
        take=take,
        skip=skip,
    )
    return [_to_out(interview) for interview in query_interviews(db, user.id, filters)]


@router.get("/interviews/stats", response_model=List[OutcomeStat])
def interview_stats_api(
    user: User = Depends(current_user), db: Session = Depends(get_db)
) -> List[OutcomeStat]:
    return [
        OutcomeStat(outcome=outcome, label=label, count=count)
        for outcome, label, count in count_by_outcome(db, user.id)
    ]


@router.post("/interviews", response_model=InterviewOut, status_code=201)
def create_interviews_api(
    payload: InterviewCreate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
) -> InterviewOut:
    return _create(db, user, payload)


@router.post("/interview", response_model=InterviewOut, status_code=201)
def create_interview_api(
    payload: InterviewCreate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
) -> InterviewOut:
    return _create(db, user, payload)


@router.get("/interview/{interview_id}", response_model=InterviewOut)
def get_interview_api(
    interview_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)
) -> InterviewOut:
    return _to_out(_get_interview_or_404(db, user, interview_id))


@router.put("/interview/{interview_id}", response_model=InterviewOut)
def update_interview_api(
    interview_id: int,
    payload: InterviewUpdate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
) -> InterviewOut:
    interview = _get_interview_or_404(db, user, interview_id)
    try:
        updated = update_interview(
            db, interview, payload.model_dump(exclude_unset=True), enforce_terminal=_enforce_terminal()
        )
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _to_out(updated)


@router.patch("/interview/{interview_id}", response_model=OutcomeOut)
def update_outcome_api(
    interview_id: int,
    payload: OutcomeUpdate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
) -> OutcomeOut:
    interview = _get_interview_or_404(db, user, interview_id)
    try:
        updated = set_outcome(db, interview, payload.outcome, enforce_terminal=_enforce_terminal())
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return OutcomeOut(id=updated.id, outcome=updated.outcome)


@router.post("/interview/{interview_id}/reject", response_model=InterviewOut)
def reject_interview_api(
    interview_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)
) -> InterviewOut:
    interview = _get_interview_or_404(db, user, interview_id)
    try:
        target = reject(interview.outcome, _enforce_terminal())
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _to_out(set_outcome(db, interview, target, enforce_terminal=False))


@router.post("/interview/{interview_id}/await", response_model=InterviewOut)
def await_interview_api(
    interview_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)
) -> InterviewOut:
    interview = _get_interview_or_404(db, user, interview_id)
    try:
        target = await_response(interview.outcome, _enforce_terminal())
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _to_out(set_outcome(db, interview, target, enforce_terminal=False))


@router.post("/interview/{interview_id}/progress", response_model=InterviewOut, status_code=201)
def progress_interview_api(
    interview_id: int,
    payload: InterviewCreate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
) -> InterviewOut:
    _get_interview_or_404(db, user, interview_id)
    return _create(db, user, payload, previous_interview_id=interview_id)
