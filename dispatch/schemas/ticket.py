from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Literal
from pydantic import BaseModel, Field

from dispatch.schemas.agent import AgentRead
from dispatch.schemas.client import ClientRead

ServiceType = Literal["alarm", "investigation", "preservation", "logistics_escort"]


class Costs(BaseModel):
    km_start: float | None = None
    km_end: float | None = None
    toll_cost: Decimal = Field(default=Decimal("0"), ge=0)
    food_cost: Decimal = Field(default=Decimal("0"), ge=0)
    other_costs: Decimal = Field(default=Decimal("0"), ge=0)


class SupportAgentIn(Costs):
    agent_id: str
    arrival: datetime | None = None
    departure: datetime | None = None


class CostsRead(BaseModel):
    km_start: float | None = None
    km_end: float | None = None
    toll_cost: Decimal | None = None
    food_cost: Decimal | None = None
    other_costs: Decimal | None = None


class SupportAgentRead(CostsRead):
    id: str
    agent_id: str
    arrival: datetime | None = None
    departure: datetime | None = None
    position: int
    payment_status: str | None = None
    paid_at: datetime | None = None
    agent: AgentRead | None = None

    model_config = {"from_attributes": True}


class TicketCreate(Costs):
    code: str | None = None
    service_type: ServiceType
    client_id: str
    vehicle_id: str | None = None
    plan_id: str | None = None
    operator_id: str | None = None
    main_agent_id: str | None = None
    city: str = ""
    state: str = ""
    coordinates_lat: float | None = None
    coordinates_lng: float | None = None
    start_datetime: datetime
    end_datetime: datetime | None = None
    summary: str | None = None
    detailed_report: str | None = None
    support_agents: list[SupportAgentIn] = []


class TicketUpdate(BaseModel):
    code: str | None = None
    service_type: ServiceType | None = None
    client_id: str | None = None
    vehicle_id: str | None = None
    plan_id: str | None = None
    operator_id: str | None = None
    main_agent_id: str | None = None
    city: str | None = None
    state: str | None = None
    coordinates_lat: float | None = None
    coordinates_lng: float | None = None
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    summary: str | None = None
    detailed_report: str | None = None
    km_start: float | None = None
    km_end: float | None = None
    toll_cost: Decimal | None = Field(default=None, ge=0)
    food_cost: Decimal | None = Field(default=None, ge=0)
    other_costs: Decimal | None = Field(default=None, ge=0)
    # Omitted leaves support agents alone; a list (even empty) replaces them.
    support_agents: list[SupportAgentIn] | None = None


class TicketStatusChange(BaseModel):
    status: Literal["open", "in_progress", "completed", "cancelled"]


class TicketPhotoCreate(BaseModel):
    file_url: str
    caption: str | None = None


class TicketPhotoRead(BaseModel):
    id: str
    ticket_id: str
    file_url: str
    caption: str | None = None
    uploaded_by: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketRead(CostsRead):
    id: str
    code: str | None = None
    status: str
    service_type: str
    client_id: str
    vehicle_id: str | None = None
    plan_id: str | None = None
    operator_id: str | None = None
    main_agent_id: str | None = None
    city: str
    state: str
    coordinates_lat: float | None = None
    coordinates_lng: float | None = None
    start_datetime: datetime
    end_datetime: datetime | None = None
    summary: str | None = None
    detailed_report: str | None = None
    main_agent_payment_status: str | None = None
    main_agent_paid_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime
    client: ClientRead | None = None
    main_agent: AgentRead | None = None
    support_agents: list[SupportAgentRead] = []
    photos: list[TicketPhotoRead] = []

    model_config = {"from_attributes": True}
