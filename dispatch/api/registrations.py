"""Public agent self-registration and the staff review queue."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.db import crud
from dispatch.db.engine import get_db
from dispatch.dependencies import require_admin, require_staff
from dispatch.errors import ValidationFailedError
from dispatch.models.agent import AgentProfileMixin
from dispatch.services.auth import AuthContext
from dispatch.schemas import AgentRead, RegistrationCreate, RegistrationRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/registrations", tags=["registrations"])

_PROFILE_FIELDS = list(AgentProfileMixin.__annotations__)


@router.post("", response_model=RegistrationRead, status_code=201)
async def submit_registration(
    body: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
):
    reg = await crud.create_registration(db, **body.model_dump())
    logger.info("New agent registration %s", reg.id)
    return reg


@router.get("", response_model=list[RegistrationRead])
async def list_registrations(
    status: str | None = "pending",
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_registrations(db, status=status or None)


@router.post("/{registration_id}/approve", response_model=AgentRead, status_code=201)
async def approve_registration(
    registration_id: str,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    reg = await crud.get_registration(db, registration_id)
    if reg.status != "pending":
        raise ValidationFailedError(f"Registration already {reg.status}")
    agent = await crud.create_agent(
        db,
        status="active",
        performance_level="good",
        **{name: getattr(reg, name) for name in _PROFILE_FIELDS},
    )
    await crud.review_registration(db, reg, "approved", auth.user_id)
    logger.info("Registration %s approved as agent %s", reg.id, agent.id)
    return agent


@router.post("/{registration_id}/reject", response_model=RegistrationRead)
async def reject_registration(
    registration_id: str,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    reg = await crud.get_registration(db, registration_id)
    if reg.status != "pending":
        raise ValidationFailedError(f"Registration already {reg.status}")
    return await crud.review_registration(db, reg, "rejected", auth.user_id)


@router.delete("/{registration_id}", status_code=204)
async def delete_registration(
    registration_id: str,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_registration(db, registration_id)
