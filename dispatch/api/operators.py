from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.db import crud
from dispatch.db.engine import get_db
from dispatch.dependencies import require_reader, require_staff
from dispatch.services.auth import AuthContext
from dispatch.schemas import OperatorCreate, OperatorRead, OperatorUpdate

router = APIRouter(prefix="/api/operators", tags=["operators"])


@router.get("", response_model=list[OperatorRead])
async def list_operators(
    active_only: bool = False,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_operators(db, active_only=active_only)


@router.post("", response_model=OperatorRead, status_code=201)
async def create_operator(
    body: OperatorCreate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_operator(db, body.name, active=body.active)


@router.get("/{operator_id}", response_model=OperatorRead)
async def get_operator(
    operator_id: str,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_operator(db, operator_id)


@router.put("/{operator_id}", response_model=OperatorRead)
async def update_operator(
    operator_id: str,
    body: OperatorUpdate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    op = await crud.get_operator(db, operator_id)
    return await crud.update_operator(db, op, **body.model_dump(exclude_unset=True))


@router.delete("/{operator_id}", status_code=204)
async def delete_operator(
    operator_id: str,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_operator(db, operator_id)
