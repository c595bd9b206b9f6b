from __future__ import annotations
from pydantic import BaseModel

from dispatch.schemas.finance import PaymentSummaryRead


class ChartPointRead(BaseModel):
    name: str
    value: int

    model_config = {"from_attributes": True}


class DashboardStatsRead(BaseModel):
    total_tickets: int
    open_tickets: int
    completed_tickets: int
    cancelled_tickets: int
    total_clients: int
    active_agents: int

    model_config = {"from_attributes": True}


class DashboardRead(BaseModel):
    stats: DashboardStatsRead
    payments: PaymentSummaryRead
    trend: list[ChartPointRead]
    status_distribution: list[ChartPointRead]
    top_clients: list[ChartPointRead]

    model_config = {"from_attributes": True}


class AgentPerformanceRead(BaseModel):
    id: str | None = None
    name: str
    count: int
    avg_minutes: int

    model_config = {"from_attributes": True}


class OperatorPerformanceRead(BaseModel):
    id: str
    name: str
    count: int

    model_config = {"from_attributes": True}


class GlobalStatsRead(BaseModel):
    avg_completion_minutes: int
    total_finished: int
    success_rate: int

    model_config = {"from_attributes": True}


class PerformanceRead(BaseModel):
    agents: list[AgentPerformanceRead]
    operators: list[OperatorPerformanceRead]
    stats: GlobalStatsRead

    model_config = {"from_attributes": True}
