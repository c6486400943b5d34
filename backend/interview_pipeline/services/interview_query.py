"""Compound filtering over one user's interviews.

Every filter is optional and ANDed with the others; the owner filter is
always applied and cannot be widened by the caller. A row's "when" is its
``date`` for timed stages or its ``deadline`` for take-home stages, so every
temporal filter is checked against both columns.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, contains_eager, selectinload

from ..models import Company, Interview
from .lifecycle import OUTCOME_LABELS, InterviewOutcome

DEFAULT_TAKE = 100
MAX_TAKE = 200


@dataclass(frozen=True)
class InterviewFilters:
    day: Optional[date] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    include_past: Optional[bool] = None
    company_id: Optional[int] = None
    company_name: Optional[str] = None
    stage_id: Optional[int] = None
    stage_method_id: Optional[int] = None
    outcomes: Tuple[InterviewOutcome, ...] = ()
    # Outcome browsing wants the whole history, not just upcoming rows.
    outcome_history: bool = False
    q: Optional[str] = None
    take: int = DEFAULT_TAKE
    skip: int = 0

    @property
    def has_date_filter(self) -> bool:
        return self.day is not None or self.date_from is not None or self.date_to is not None

    @property
    def has_company_filter(self) -> bool:
        return self.company_id is not None or bool(self.company_name)


def clamp_take(take: Optional[int]) -> int:
    if take is None:
        return DEFAULT_TAKE
    return max(1, min(int(take), MAX_TAKE))


def clamp_skip(skip: Optional[int]) -> int:
    if skip is None:
        return 0
    return max(0, int(skip))


def resolve_include_past(filters: InterviewFilters) -> bool:
    if filters.outcome_history and filters.outcomes:
        return True
    if filters.include_past is not None:
        return filters.include_past
    return filters.has_company_filter


LIKE_ESCAPE = "\\"


def _contains(text: str) -> str:
    """LIKE pattern matching ``text`` literally anywhere in the column."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _temporal_condition(filters: InterviewFilters, now: datetime):
    if filters.day is not None:
        start = _start_of(filters.day)
        return or_(
            and_(Interview.date >= start, Interview.date < start + timedelta(days=1)),
            Interview.deadline == filters.day,
        )

    if filters.date_from is not None or filters.date_to is not None:
        date_bounds = []
        deadline_bounds = []
        if filters.date_from is not None:
            date_bounds.append(Interview.date >= _start_of(filters.date_from))
            deadline_bounds.append(Interview.deadline >= filters.date_from)
        if filters.date_to is not None:
            # inclusive through the last instant of that day
            date_bounds.append(Interview.date < _start_of(filters.date_to) + timedelta(days=1))
            deadline_bounds.append(Interview.deadline <= filters.date_to)
        return or_(and_(*date_bounds), and_(*deadline_bounds))

    if resolve_include_past(filters):
        return None

    today = now.date()
    return or_(Interview.date >= _start_of(today), Interview.deadline >= today)


def build_query(db: Session, user_id: int, filters: InterviewFilters, now: Optional[datetime] = None):
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    query = (
        db.query(Interview)
        .join(Interview.company)
        .options(
            contains_eager(Interview.company),
            selectinload(Interview.stage),
            selectinload(Interview.stage_method),
        )
        .filter(Interview.user_id == user_id)
    )

    temporal = _temporal_condition(filters, now)
    if temporal is not None:
        query = query.filter(temporal)

    if filters.company_id is not None:
        query = query.filter(Interview.company_id == filters.company_id)
    elif filters.company_name:
        like = _contains(filters.company_name)
        query = query.filter(
            or_(
                Company.name.ilike(like, escape=LIKE_ESCAPE),
                Interview.client_company.ilike(like, escape=LIKE_ESCAPE),
            )
        )

    if filters.stage_id is not None:
        query = query.filter(Interview.stage_id == filters.stage_id)
    if filters.stage_method_id is not None:
        query = query.filter(Interview.stage_method_id == filters.stage_method_id)

    if filters.outcomes:
        query = query.filter(Interview.outcome.in_(list(filters.outcomes)))

    search = (filters.q or "").strip()
    if search:
        like = _contains(search)
        query = query.filter(
            or_(
                Interview.job_title.ilike(like, escape=LIKE_ESCAPE),
                Interview.interviewer.ilike(like, escape=LIKE_ESCAPE),
                Company.name.ilike(like, escape=LIKE_ESCAPE),
                Interview.client_company.ilike(like, escape=LIKE_ESCAPE),
            )
        )

    return query.order_by(
        Interview.date.asc().nulls_last(),
        Interview.deadline.asc().nulls_last(),
        Interview.id.asc(),
    )


def query_interviews(
    db: Session, user_id: int, filters: InterviewFilters, now: Optional[datetime] = None
) -> List[Interview]:
    query = build_query(db, user_id, filters, now=now)
    return query.offset(clamp_skip(filters.skip)).limit(clamp_take(filters.take)).all()


def count_by_outcome(db: Session, user_id: int) -> List[Tuple[InterviewOutcome, str, int]]:
    rows = (
        db.query(Interview.outcome, func.count(Interview.id))
        .filter(Interview.user_id == user_id)
        .group_by(Interview.outcome)
        .all()
    )
    stats = [(outcome, OUTCOME_LABELS.get(outcome, outcome.value), int(count)) for outcome, count in rows]
    return sorted(stats, key=lambda item: (-item[2], item[1]))
