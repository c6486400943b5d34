from __future__ import annotations

from typing import Dict

from fastapi import APIRouter

from ..version import APP_NAME, APP_VERSION

router = APIRouter(prefix="/api")


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "app": APP_NAME, "version": APP_VERSION}
