from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class PlanCreate(BaseModel):
    name: str
    category: str | None = None
    description: str | None = None


class PlanUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None


class PlanRead(BaseModel):
    id: str
    name: str
    category: str | None = None
    description: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
