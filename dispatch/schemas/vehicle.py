from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class VehicleCreate(BaseModel):
    client_id: str
    description: str
    plate_main: str
    plate_trailer: str | None = None
    type: str | None = None
    color: str | None = None
    year: int | None = None


class VehicleUpdate(BaseModel):
    description: str | None = None
    plate_main: str | None = None
    plate_trailer: str | None = None
    type: str | None = None
    color: str | None = None
    year: int | None = None


class VehicleRead(BaseModel):
    id: str
    client_id: str
    description: str
    plate_main: str
    plate_trailer: str | None = None
    type: str | None = None
    color: str | None = None
    year: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
