from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api.calendar import router as calendar_router
from .api.catalog import router as catalog_router
from .api.guest import router as guest_router
from .api.health import router as health_router
from .api.interviews import router as interviews_router
from .config import get_settings
from .db import init_db
from .version import APP_NAME, APP_VERSION

logger = logging.getLogger(__name__)

app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    logger.info("%s %s ready", APP_NAME, APP_VERSION)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(SQLAlchemyError)
async def _storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(health_router)
app.include_router(catalog_router)
app.include_router(interviews_router)
app.include_router(calendar_router)
app.include_router(guest_router)
