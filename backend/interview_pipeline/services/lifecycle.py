"""Outcome states, creation-time placement rules and transitions for interviews.

Stage labels that carry behaviour ("Applied", "Technical Test") are only
special-cased here; every other module asks this one.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Optional


class InterviewOutcome(str, enum.Enum):
    AWAITING_RESPONSE = "AWAITING_RESPONSE"
    SCHEDULED = "SCHEDULED"
    PASSED = "PASSED"
    REJECTED = "REJECTED"
    OFFER_RECEIVED = "OFFER_RECEIVED"
    OFFER_ACCEPTED = "OFFER_ACCEPTED"
    OFFER_DECLINED = "OFFER_DECLINED"
    WITHDREW = "WITHDREW"


OUTCOME_LABELS = {
    InterviewOutcome.SCHEDULED: "Scheduled",
    InterviewOutcome.AWAITING_RESPONSE: "Awaiting Response",
    InterviewOutcome.PASSED: "Passed",
    InterviewOutcome.REJECTED: "Rejected",
    InterviewOutcome.OFFER_RECEIVED: "Offer Received",
    InterviewOutcome.OFFER_ACCEPTED: "Offer Accepted",
    InterviewOutcome.OFFER_DECLINED: "Offer Declined",
    InterviewOutcome.WITHDREW: "Withdrew",
}

TERMINAL_OUTCOMES = frozenset(
    {
        InterviewOutcome.PASSED,
        InterviewOutcome.REJECTED,
        InterviewOutcome.OFFER_DECLINED,
        InterviewOutcome.WITHDREW,
    }
)

APPLIED_STAGE = "Applied"
TECHNICAL_TEST_STAGE = "Technical Test"
DEFAULT_START_HOUR = 9


class InvalidTransition(ValueError):
    pass


@dataclass(frozen=True)
class Schedule:
    date: Optional[datetime]
    deadline: Optional[date]
    interviewer: Optional[str]
    link: Optional[str]


def is_technical_test(stage: str) -> bool:
    return stage.strip().lower() == TECHNICAL_TEST_STAGE.lower()


def initial_outcome(stage: str) -> InterviewOutcome:
    if stage == APPLIED_STAGE:
        return InterviewOutcome.AWAITING_RESPONSE
    return InterviewOutcome.SCHEDULED


def to_utc_naive(value: datetime) -> datetime:
    """Storage keeps timestamps as naive UTC; naive input is taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def default_start(now: Optional[datetime] = None) -> datetime:
    """Today at 09:00 server-local time, expressed as naive UTC."""
    local_now = (now or datetime.now(timezone.utc)).astimezone()
    local_start = datetime.combine(
        local_now.date(), time(hour=DEFAULT_START_HOUR), tzinfo=local_now.tzinfo
    )
    return to_utc_naive(local_start)


def place_schedule(
    stage: str,
    when: Optional[datetime],
    deadline: Optional[date],
    interviewer: Optional[str] = None,
    link: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Schedule:
    if when is not None:
        when = to_utc_naive(when)
    if when is None and deadline is None:
        when = default_start(now)

    if is_technical_test(stage):
        return Schedule(
            date=None,
            deadline=deadline if deadline is not None else when.date(),
            interviewer=None,
            link=None,
        )
    if when is None:
        # Only a deadline was given for a timed stage; schedule it at the default hour.
        when = datetime.combine(deadline, time(hour=DEFAULT_START_HOUR))
    return Schedule(date=when, deadline=None, interviewer=interviewer or None, link=link or None)


def check_transition(
    current: InterviewOutcome, target: InterviewOutcome, enforce_terminal: bool = True
) -> None:
    if current == target:
        return
    if enforce_terminal and current in TERMINAL_OUTCOMES:
        raise InvalidTransition(
            f"Interview outcome {current.value} is final and cannot change to {target.value}"
        )


def reject(current: InterviewOutcome, enforce_terminal: bool = True) -> InterviewOutcome:
    check_transition(current, InterviewOutcome.REJECTED, enforce_terminal)
    return InterviewOutcome.REJECTED


def await_response(current: InterviewOutcome, enforce_terminal: bool = True) -> InterviewOutcome:
    check_transition(current, InterviewOutcome.AWAITING_RESPONSE, enforce_terminal)
    return InterviewOutcome.AWAITING_RESPONSE


def mark_passed(current: InterviewOutcome, enforce_terminal: bool = True) -> InterviewOutcome:
    check_transition(current, InterviewOutcome.PASSED, enforce_terminal)
    return InterviewOutcome.PASSED
