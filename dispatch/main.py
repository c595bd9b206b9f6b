"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.api.router import api_router
from dispatch.config import get_settings
from dispatch.db.engine import create_all, engine, get_db
from dispatch.errors import DispatchError, InvalidTransitionError, NetworkOrServiceError

_settings = get_settings()
logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_all()
    yield
    await engine.dispose()


app = FastAPI(
    title="Patrol Dispatch",
    description="Dispatch and ticketing back office: clients, agents, tickets, agent payments and reporting.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


def _error_response(exc: DispatchError) -> JSONResponse:
    content = {"detail": exc.detail, "error": type(exc).__name__}
    if isinstance(exc, InvalidTransitionError):
        content["current"] = exc.current
        content["attempted"] = exc.attempted
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(DispatchError)
async def dispatch_error_handler(request: Request, exc: DispatchError):
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return _error_response(exc)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database failure on %s %s", request.method, request.url.path)
    return _error_response(NetworkOrServiceError("Database request failed"))


@app.get("/health", tags=["system"])
async def health(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        logger.exception("Health check database probe failed")
        db_status = "error"
    return {"status": "ok" if db_status == "ok" else "degraded", "database": db_status}
