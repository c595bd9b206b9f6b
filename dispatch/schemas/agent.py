from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel

AgentStatus = Literal["active", "inactive"]
PerformanceLevel = Literal["poor", "good", "excellent"]
VehicleType = Literal["car", "motorcycle"]


class AgentProfile(BaseModel):
    """Fields shared by agent records and public registrations."""

    name: str
    document: str | None = None
    phone: str
    email: str | None = None
    address: str | None = None
    postal_code: str | None = None
    is_armed: bool = False
    vehicle_plate: str | None = None
    vehicle_type: VehicleType | None = None
    has_alarm_skill: bool = False
    has_investigation_skill: bool = False
    has_preservation_skill: bool = False
    has_logistics_skill: bool = False
    has_auditing_skill: bool = False
    pix_key: str | None = None
    bank_name: str | None = None
    bank_agency: str | None = None
    bank_account: str | None = None
    bank_account_type: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    notes: str | None = None


class AgentCreate(AgentProfile):
    status: AgentStatus = "active"
    performance_level: PerformanceLevel = "good"
    # When set and no coordinates are given, the address is geocoded.
    geocode_fallback: str | None = None


class AgentUpdate(BaseModel):
    name: str | None = None
    document: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    postal_code: str | None = None
    is_armed: bool | None = None
    vehicle_plate: str | None = None
    vehicle_type: VehicleType | None = None
    has_alarm_skill: bool | None = None
    has_investigation_skill: bool | None = None
    has_preservation_skill: bool | None = None
    has_logistics_skill: bool | None = None
    has_auditing_skill: bool | None = None
    pix_key: str | None = None
    bank_name: str | None = None
    bank_agency: str | None = None
    bank_account: str | None = None
    bank_account_type: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    notes: str | None = None
    status: AgentStatus | None = None
    performance_level: PerformanceLevel | None = None


class AgentRead(AgentProfile):
    id: str
    status: str
    performance_level: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AgentDistanceRead(BaseModel):
    agent: AgentRead
    distance_km: float

    model_config = {"from_attributes": True}


class AgentMapRead(BaseModel):
    origin_lat: float | None = None
    origin_lon: float | None = None
    agents: list[AgentDistanceRead] = []


class RegistrationCreate(AgentProfile):
    pass


class RegistrationRead(AgentProfile):
    id: str
    status: str  # pending | approved | rejected
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
