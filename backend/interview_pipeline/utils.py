from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

ICS_LINE_LIMIT = 75

CALENDAR_HEADER = (
    "BEGIN:VCALENDAR",
    "VERSION:2.0",
    "PRODID:-//Interview Tracker//Calendar//EN",
    "CALSCALE:GREGORIAN",
    "METHOD:PUBLISH",
    "X-WR-CALNAME:Interview Schedule",
    "X-WR-TIMEZONE:UTC",
)


def parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        parsed = parse_datetime(value)
        return parsed.date() if parsed else None


def parse_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def escape_ics_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def fold_ics_line(line: str) -> List[str]:
    """Split a content line into 75-octet chunks; continuations start with a space."""
    encoded = line.encode("utf-8")
    if len(encoded) <= ICS_LINE_LIMIT:
        return [line]
    parts: List[str] = []
    current = ""
    size = 0
    limit = ICS_LINE_LIMIT
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > limit:
            parts.append(current)
            current = " "
            size = 1
        current += char
        size += width
    parts.append(current)
    return parts


def ics_datetime(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%SZ")


def ics_date(d: date) -> str:
    return d.strftime("%Y%m%d")


def _event_lines(event: Dict[str, Any], stamp: str) -> List[str]:
    lines = ["BEGIN:VEVENT", f"UID:{event['uid']}", f"DTSTAMP:{stamp}"]
    if event.get("all_day"):
        lines.append(f"DTSTART;VALUE=DATE:{ics_date(event['start'])}")
        lines.append(f"DTEND;VALUE=DATE:{ics_date(event.get('end') or event['start'])}")
    else:
        lines.append(f"DTSTART:{ics_datetime(event['start'])}")
        lines.append(f"DTEND:{ics_datetime(event['end'])}")
    lines.append(f"SUMMARY:{escape_ics_text(event['summary'])}")
    lines.append(f"DESCRIPTION:{escape_ics_text(event.get('description') or '')}")
    if event.get("location"):
        lines.append(f"LOCATION:{escape_ics_text(event['location'])}")
    if event.get("confirmed"):
        lines.append("STATUS:CONFIRMED")
    alarm = event.get("alarm")
    if alarm:
        lines.extend(
            [
                "BEGIN:VALARM",
                "ACTION:DISPLAY",
                f"DESCRIPTION:{escape_ics_text(alarm['description'])}",
                f"TRIGGER:{alarm['trigger']}",
                "END:VALARM",
            ]
        )
    lines.append("END:VEVENT")
    return lines


def build_ics(events: Iterable[Dict[str, Any]], now: Optional[datetime] = None) -> bytes:
    stamp = ics_datetime(now or datetime.utcnow())
    lines: List[str] = list(CALENDAR_HEADER)
    for event in events:
        lines.extend(_event_lines(event, stamp))
    lines.append("END:VCALENDAR")
    folded: List[str] = []
    for line in lines:
        folded.extend(fold_ics_line(line))
    return ("\r\n".join(folded) + "\r\n").encode("utf-8")
