"""Local capture of interviews made before sign-in, and their one-shot replay to the server.

Entries are replayed oldest first. The first failure stops the replay; entries
already replayed are dropped from the local store so that a retry never sends
them twice, and everything from the failing entry onwards stays for next time.
"""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..models import Interview
from ..schemas import GuestInterview, GuestInterviewView, GuestStorage, ServerInterviewView
from ..storage import get_storage_paths
from ..utils import parse_date, parse_datetime
from .lifecycle import is_technical_test, to_utc_naive

logger = logging.getLogger(__name__)

GUEST_FIELDS = (
    "stage",
    "company_name",
    "client_company",
    "job_title",
    "job_posting_link",
    "date",
    "time",
    "interviewer",
    "location_type",
    "interview_link",
    "notes",
)


def make_hash(entry: Dict[str, Any]) -> str:
    parts = [
        str(entry.get("company_name") or "").strip(),
        str(entry.get("job_title") or "").strip(),
        str(entry.get("date") or ""),
        str(entry.get("time") or ""),
    ]
    return "|".join(parts).lower()


@dataclass
class ReplayResult:
    replayed: List[GuestInterview] = field(default_factory=list)
    created: List[Any] = field(default_factory=list)
    remaining: List[GuestInterview] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def complete(self) -> bool:
        return not self.remaining


def replay_entries(
    entries: List[GuestInterview],
    replay: Callable[[GuestInterview], Any],
    on_replayed: Optional[Callable[[GuestInterview], None]] = None,
) -> ReplayResult:
    result = ReplayResult()
    # Clients send createdAt with or without a zone; compare everything as UTC.
    ordered = sorted(entries, key=lambda entry: to_utc_naive(entry.created_at))
    for index, entry in enumerate(ordered):
        try:
            created = replay(entry)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Guest replay stopped at entry %s: %s", entry.id, exc)
            result.remaining = ordered[index:]
            result.error = str(exc) or exc.__class__.__name__
            return result
        result.replayed.append(entry)
        result.created.append(created)
        if on_replayed is not None:
            on_replayed(entry)
    return result


class GuestStore:
    """Versioned JSON document of guest entries kept on the client's disk."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else get_storage_paths().guest_store_path

    def load(self) -> GuestStorage:
        if not self.path.exists():
            return GuestStorage()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return GuestStorage()
        if not isinstance(raw, dict) or raw.get("version") != 1:
            return GuestStorage()
        try:
            return GuestStorage.model_validate(raw)
        except ValidationError:
            return GuestStorage()

    def save(self, data: GuestStorage) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(data.model_dump_json(by_alias=True, indent=2), encoding="utf-8")

    def list(self) -> List[GuestInterview]:
        return self.load().interviews

    def add(self, fields: Dict[str, Any]) -> GuestInterview:
        """Store an entry; an entry with the same dedupe hash is returned instead of duplicated."""
        current = self.load()
        values = {key: fields.get(key) for key in GUEST_FIELDS}
        digest = make_hash(values)
        for existing in current.interviews:
            if existing.hash == digest:
                return existing
        entry = GuestInterview(
            id=f"guest_{uuid.uuid4().hex[:8]}",
            created_at=datetime.now(timezone.utc),
            hash=digest,
            **values,
        )
        current.interviews.append(entry)
        self.save(current)
        return entry

    def remove(self, entry_id: str) -> None:
        current = self.load()
        current.interviews = [entry for entry in current.interviews if entry.id != entry_id]
        self.save(current)

    def clear(self) -> None:
        self.save(GuestStorage())

    def reconcile(self, replay: Callable[[GuestInterview], Any]) -> ReplayResult:
        entries = self.list()
        if not entries:
            return ReplayResult()
        result = replay_entries(entries, replay, on_replayed=lambda entry: self.remove(entry.id))
        if result.complete:
            self.clear()
        return result


def guest_entry_to_payload(entry: GuestInterview) -> Dict[str, Any]:
    """Shape a guest entry as a creation payload; guest times carry no zone and are taken as UTC."""
    when = None
    if entry.date:
        raw = f"{entry.date}T{entry.time}" if entry.time and "T" not in entry.date else entry.date
        when = parse_datetime(raw)
        if when is None:
            raise ValueError(f"Invalid guest date: {raw}")
    return {
        "stage": entry.stage,
        "company_name": entry.company_name,
        "client_company": entry.client_company,
        "job_title": entry.job_title,
        "job_posting_link": entry.job_posting_link,
        "date": when,
        "deadline": None,
        "interviewer": entry.interviewer,
        "location_type": entry.location_type,
        "interview_link": entry.interview_link,
        "notes": entry.notes,
    }


def guest_view(entry: GuestInterview) -> GuestInterviewView:
    when = parse_datetime(f"{entry.date}T{entry.time}") if entry.date and entry.time else None
    technical = is_technical_test(entry.stage)
    return GuestInterviewView(
        key=entry.id,
        company_name=entry.client_company or entry.company_name,
        job_title=entry.job_title,
        stage=entry.stage,
        date=None if technical else (when or parse_datetime(entry.date)),
        deadline=parse_date(entry.date) if technical else None,
        interviewer=entry.interviewer,
        link=entry.interview_link,
    )


def server_view(interview: Interview) -> ServerInterviewView:
    return ServerInterviewView(
        key=f"interview-{interview.id}",
        id=interview.id,
        company_name=interview.client_company or interview.company.name,
        job_title=interview.job_title,
        stage=interview.stage.stage,
        date=interview.date,
        deadline=interview.deadline,
        interviewer=interview.interviewer,
        link=interview.link,
        outcome=interview.outcome,
    )
