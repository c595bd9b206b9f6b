"""FastAPI dependency providers for auth, settings, and role enforcement."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import Settings, get_settings
from dispatch.db.engine import get_db
from dispatch.errors import PermissionDeniedError
from dispatch.services.auth import AuthContext, get_current_user
from dispatch.services.geocoding import Geocoder

STAFF_ROLES = ("admin", "operator")
READ_ROLES = ("admin", "operator", "client_viewer")


@lru_cache
def get_settings_dep() -> Settings:
    return get_settings()


@lru_cache
def _geocoder() -> Geocoder:
    # One instance per process so the request spacing applies across callers.
    return Geocoder(get_settings_dep().geocoding)


def get_geocoder() -> Geocoder:
    return _geocoder()


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid authenticated session. Returns AuthContext."""
    return await get_current_user(request, db)


def require_role(*allowed_roles: str):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise PermissionDeniedError("Insufficient permissions")
        return auth
    return _check


require_staff = require_role(*STAFF_ROLES)
require_reader = require_role(*READ_ROLES)
require_admin = require_role("admin")
