from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.db import crud
from dispatch.db.engine import get_db
from dispatch.dependencies import require_reader, require_staff
from dispatch.services.auth import AuthContext
from dispatch.schemas import PlanCreate, PlanRead, PlanUpdate

router = APIRouter(prefix="/api/plans", tags=["plans"])


@router.get("", response_model=list[PlanRead])
async def list_plans(
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_plans(db)


@router.post("", response_model=PlanRead, status_code=201)
async def create_plan(
    body: PlanCreate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_plan(db, **body.model_dump())


@router.get("/{plan_id}", response_model=PlanRead)
async def get_plan(
    plan_id: str,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_plan(db, plan_id)


@router.put("/{plan_id}", response_model=PlanRead)
async def update_plan(
    plan_id: str,
    body: PlanUpdate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    plan = await crud.get_plan(db, plan_id)
    return await crud.update_plan(db, plan, **body.model_dump(exclude_unset=True))


@router.delete("/{plan_id}", status_code=204)
async def delete_plan(
    plan_id: str,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_plan(db, plan_id)
