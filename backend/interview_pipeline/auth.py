from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .config import get_settings
from .crud import get_or_create_user
from .db import get_db
from .models import User


@dataclass(frozen=True)
class Identity:
    external_id: str
    email: Optional[str] = None
    name: Optional[str] = None


def current_identity(request: Request) -> Identity:
    """Identity asserted by the authenticating proxy in front of the service."""
    settings = get_settings()
    external_id = (request.headers.get(settings.auth_user_header) or "").strip()
    if not external_id:
        raise HTTPException(status_code=401, detail="unauthorized")
    email = (request.headers.get(settings.auth_email_header) or "").strip() or None
    name = (request.headers.get(settings.auth_name_header) or "").strip() or None
    return Identity(external_id=external_id, email=email, name=name)


def current_user(
    identity: Identity = Depends(current_identity), db: Session = Depends(get_db)
) -> User:
    return get_or_create_user(db, identity.external_id, email=identity.email, name=identity.name)
