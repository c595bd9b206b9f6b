from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.db import crud
from dispatch.db.engine import get_db
from dispatch.dependencies import require_reader, require_staff
from dispatch.services.auth import AuthContext
from dispatch.schemas import ClientCreate, ClientRead, ClientUpdate, VehicleRead

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("", response_model=list[ClientRead])
async def list_clients(
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_clients(db)


@router.post("", response_model=ClientRead, status_code=201)
async def create_client(
    body: ClientCreate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_client(db, **body.model_dump())


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: str,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_client(db, client_id)


@router.get("/{client_id}/vehicles", response_model=list[VehicleRead])
async def list_client_vehicles(
    client_id: str,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    await crud.get_client(db, client_id)
    return await crud.list_vehicles(db, client_id=client_id)


@router.put("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: str,
    body: ClientUpdate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    client = await crud.get_client(db, client_id)
    return await crud.update_client(db, client, **body.model_dump(exclude_unset=True))


@router.delete("/{client_id}", status_code=204)
async def delete_client(
    client_id: str,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_client(db, client_id)
