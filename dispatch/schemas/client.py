from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class ClientCreate(BaseModel):
    name: str
    document: str
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    city: str
    state: str
    postal_code: str | None = None
    default_lat: Decimal | None = None
    default_lng: Decimal | None = None
    notes: str | None = None


class ClientUpdate(BaseModel):
    name: str | None = None
    document: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    default_lat: Decimal | None = None
    default_lng: Decimal | None = None
    notes: str | None = None


class ClientRead(BaseModel):
    id: str
    name: str
    document: str
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    city: str
    state: str
    postal_code: str | None = None
    default_lat: Decimal | None = None
    default_lng: Decimal | None = None
    notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
