from __future__ import annotations

import re
from typing import Optional, Pattern, Tuple
from urllib.parse import urlsplit

PHONE_METHOD = "Phone"
FALLBACK_METHOD = "Link"

# Order matters: the first signature that matches wins.
PROVIDER_SIGNATURES: Tuple[Tuple[Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), name)
    for pattern, name in (
        (r"zoom\.us|zoom\.com", "Zoom"),
        (r"zoomgov\.com", "ZoomGov"),
        (r"teams\.microsoft\.com|microsoft\.teams|live\.com/meet", "Teams"),
        (
            r"meet\.google\.com|hangouts\.google\.com|google\.com/hangouts"
            r"|workspace\.google\.com/products/meet",
            "Google Meet",
        ),
        (r"webex\.com|webex", "Webex"),
        (r"skype\.com", "Skype"),
        (r"bluejeans\.com", "BlueJeans"),
        (r"whereby\.com", "Whereby"),
        (r"jitsi\.org|meet\.jit\.si", "Jitsi"),
        (r"gotomeet|gotowebinar|goto\.com", "GoToMeeting"),
        (r"chime\.aws|amazonchime\.com", "Amazon Chime"),
        (r"slack\.com", "Slack"),
        (r"discord\.(gg|com)", "Discord"),
        (r"facetime|apple\.com/facetime", "FaceTime"),
        (r"whatsapp\.com", "WhatsApp"),
        (r"(^|\.)8x8\.vc", "8x8"),
        (r"telegram\.(me|org)|(^|/)t\.me/", "Telegram"),
        (r"signal\.org", "Signal"),
    )
)


def _hostname(raw: str) -> str:
    for candidate in (raw, f"https://{raw}"):
        try:
            host = urlsplit(candidate).hostname
        except ValueError:
            continue
        if host:
            return host
    return ""


def infer_method(location_type: Optional[str], link: Optional[str]) -> str:
    """Name the communication channel for a stage from its location type and meeting link.

    Never raises: anything unrecognised or malformed degrades to ``"Link"``.
    """
    if location_type == "phone":
        return PHONE_METHOD
    if not link:
        return FALLBACK_METHOD

    raw = str(link)
    host = re.sub(r"^www\.", "", _hostname(raw.strip()), flags=re.IGNORECASE)
    for pattern, name in PROVIDER_SIGNATURES:
        if pattern.search(host) or pattern.search(raw):
            return name
    return FALLBACK_METHOD
