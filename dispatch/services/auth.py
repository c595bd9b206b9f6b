"""Authentication service: DB-backed sessions and bcrypt passwords."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

import bcrypt
from fastapi import Request, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.models.auth_models import User, UserSession

SESSION_COOKIE_NAME = "session_token"
SESSION_MAX_AGE_DAYS = 7


@dataclass
class AuthContext:
    user_id: str
    role: str  # 'admin' | 'operator' | 'agent' | 'client_viewer'
    email: str
    display_name: str


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _hash_token(token: str) -> str:
    """SHA-256 hash of a session token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def create_session(
    user: User, db: AsyncSession, ip_address: str = "", max_age_days: int = SESSION_MAX_AGE_DAYS,
) -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    session = UserSession(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(days=max_age_days),
        ip_address=ip_address,
    )
    db.add(session)
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    """Look up session by token hash, return User if valid."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    session = result.scalars().first()
    if not session:
        return None

    user = await db.get(User, session.user_id)
    if not user or not user.is_active:
        return None
    return user


async def remove_session(token: str, db: AsyncSession) -> None:
    await db.execute(delete(UserSession).where(UserSession.token_hash == _hash_token(token)))
    await db.commit()


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user


async def get_current_user(request: Request, db: AsyncSession) -> AuthContext:
    """Read session cookie, validate, return AuthContext or raise 401."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await validate_session(token, db)
    if not user:
        raise HTTPException(status_code=401, detail="Session expired")

    return AuthContext(
        user_id=user.id,
        role=user.role,
        email=user.email,
        display_name=user.display_name,
    )
