"""FastAPI entrypoint for the Deligo order lifecycle service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from deligo.api.v1.api import api_router
from deligo.core.config import settings
from deligo.db import session as db_session
from deligo.db.base import Base
from deligo.db.migrations import ensure_sqlite_schema
from deligo.db.seed import ensure_admin_user
from deligo.services.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    OrderEngineError,
    UnauthorizedError,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[OrderEngineError], int] = {
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=db_session.engine)
    ensure_sqlite_schema(db_session.engine)
    with db_session.SessionLocal() as session:
        admin_present = ensure_admin_user(session)
    logger.info("[BOOTSTRAP] env=%s admin seeded: %s", settings.app_env, "yes" if admin_present else "no")
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(OrderEngineError)
async def order_engine_error_handler(request: Request, exc: OrderEngineError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ConflictError):
        logger.info("[ORDER] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code, "retryable": exc.retryable},
    )


@app.get("/health")
def health() -> dict[str, str]:
    """Basic health check."""
    return {"status": "ok", "env": settings.app_env}
