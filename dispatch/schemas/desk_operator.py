from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class OperatorCreate(BaseModel):
    name: str
    active: bool = True


class OperatorUpdate(BaseModel):
    name: str | None = None
    active: bool | None = None


class OperatorRead(BaseModel):
    id: str
    name: str
    active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
