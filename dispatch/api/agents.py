"""Agent directory API, including the nearest-agent map search."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import Settings
from dispatch.db import crud
from dispatch.db.engine import get_db
from dispatch.dependencies import get_geocoder, get_settings_dep, require_reader, require_staff
from dispatch.errors import NetworkOrServiceError
from dispatch.services.auth import AuthContext
from dispatch.services.geocoding import Geocoder
from dispatch.services.views import AgentMapView
from dispatch.schemas import AgentCreate, AgentMapRead, AgentRead, AgentUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agents", tags=["agents"])


@router.get("", response_model=list[AgentRead])
async def list_agents(
    search: str = "",
    skills: list[str] = Query(default=[]),
    status: str | None = None,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_agents(db, search=search, skills=skills, status=status)


@router.get("/map/nearest", response_model=AgentMapRead)
async def nearest_agents(
    q: str = "",
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    geocoder: Geocoder = Depends(get_geocoder),
):
    data = (await AgentMapView(db, settings, geocoder, query=q).load()).unwrap()
    return {
        "origin_lat": data.origin.lat if data.origin else None,
        "origin_lon": data.origin.lon if data.origin else None,
        "agents": [{"agent": d.agent, "distance_km": d.distance_km} for d in data.agents],
    }


@router.post("", response_model=AgentRead, status_code=201)
async def create_agent(
    body: AgentCreate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
):
    fields = body.model_dump(exclude={"geocode_fallback"})
    if body.address and (body.latitude is None or body.longitude is None):
        try:
            coords = await geocoder.geocode(body.address, body.geocode_fallback)
        except NetworkOrServiceError as exc:
            logger.warning("Geocoding unavailable for agent %s: %s", body.name, exc.detail)
            coords = None
        if coords is not None:
            fields["latitude"], fields["longitude"] = coords.lat, coords.lon
        else:
            logger.warning("No coordinates found for agent %s", body.name)
    return await crud.create_agent(db, **fields)


@router.get("/{agent_id}", response_model=AgentRead)
async def get_agent(
    agent_id: str,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_agent(db, agent_id)


@router.put("/{agent_id}", response_model=AgentRead)
async def update_agent(
    agent_id: str,
    body: AgentUpdate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    agent = await crud.get_agent(db, agent_id)
    return await crud.update_agent(db, agent, **body.model_dump(exclude_unset=True))


@router.delete("/{agent_id}", status_code=204)
async def delete_agent(
    agent_id: str,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_agent(db, agent_id)
