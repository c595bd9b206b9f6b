from __future__ import annotations
from pydantic import BaseModel


class PostalAddressRead(BaseModel):
    postal_code: str
    found: bool
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    full_address: str = ""

    model_config = {"from_attributes": True}


class CoordinatesRead(BaseModel):
    found: bool
    lat: float | None = None
    lon: float | None = None


class PlaceRead(BaseModel):
    found: bool
    city: str = ""
    state: str = ""
