"""Auth API: login, logout, current user."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import Settings
from dispatch.db.engine import get_db
from dispatch.dependencies import get_settings_dep, require_auth
from dispatch.schemas import LoginRequest
from dispatch.services.auth import (
    AuthContext, SESSION_COOKIE_NAME, authenticate, create_session, remove_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    user = await authenticate(db, body.email, body.password)
    if user is None:
        logger.info("Failed login for %s", body.email)
        return JSONResponse(status_code=401, content={"detail": "Invalid credentials"})

    ip = request.client.host if request.client else ""
    token = await create_session(user, db, ip_address=ip, max_age_days=settings.session_max_age_days)

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()

    response = JSONResponse(content={"ok": True, "user_id": user.id, "role": user.role})
    response.set_cookie(
        SESSION_COOKIE_NAME, token,
        httponly=True, samesite="lax",
        max_age=86400 * settings.session_max_age_days,
    )
    return response


@router.post("/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        await remove_session(token, db)
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/me")
async def me(auth: AuthContext = Depends(require_auth)):
    return {
        "user_id": auth.user_id,
        "email": auth.email,
        "display_name": auth.display_name,
        "role": auth.role,
    }
