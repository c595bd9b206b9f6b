"""Dashboard and performance reporting."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import Settings
from dispatch.db.engine import get_db
from dispatch.dependencies import get_settings_dep, require_reader
from dispatch.services.auth import AuthContext
from dispatch.services.views import DashboardView, PerformanceView
from dispatch.schemas import DashboardRead, PerformanceRead

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardRead)
async def dashboard(
    range_: str = Query("month", alias="range"),
    start: date | None = None,
    end: date | None = None,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    view = DashboardView(db, settings, preset=range_, start=start, end=end)
    return (await view.load()).unwrap()


@router.get("/performance", response_model=PerformanceRead)
async def performance(
    range_: str = Query("month", alias="range"),
    start: date | None = None,
    end: date | None = None,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    view = PerformanceView(db, settings, preset=range_, start=start, end=end)
    return (await view.load()).unwrap()
