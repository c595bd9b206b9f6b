"""Pydantic request/response schemas."""

from dispatch.schemas.auth import LoginRequest, UserRead
from dispatch.schemas.client import ClientCreate, ClientRead, ClientUpdate
from dispatch.schemas.vehicle import VehicleCreate, VehicleRead, VehicleUpdate
from dispatch.schemas.plan import PlanCreate, PlanRead, PlanUpdate
from dispatch.schemas.desk_operator import OperatorCreate, OperatorRead, OperatorUpdate
from dispatch.schemas.agent import (
    AgentCreate, AgentRead, AgentUpdate, AgentMapRead, AgentDistanceRead,
    RegistrationCreate, RegistrationRead,
)
from dispatch.schemas.ticket import (
    SupportAgentIn, SupportAgentRead, TicketCreate, TicketRead, TicketUpdate,
    TicketStatusChange, TicketPhotoCreate, TicketPhotoRead,
)
from dispatch.schemas.finance import (
    PaymentLineRead, LedgerRead, LedgerSummaryRead, PaymentSlotRequest, PaymentSummaryRead,
)
from dispatch.schemas.reporting import (
    ChartPointRead, DashboardRead, DashboardStatsRead,
    AgentPerformanceRead, OperatorPerformanceRead, GlobalStatsRead, PerformanceRead,
)
from dispatch.schemas.lookup import PostalAddressRead, CoordinatesRead, PlaceRead

__all__ = [
    "LoginRequest", "UserRead",
    "ClientCreate", "ClientRead", "ClientUpdate",
    "VehicleCreate", "VehicleRead", "VehicleUpdate",
    "PlanCreate", "PlanRead", "PlanUpdate",
    "OperatorCreate", "OperatorRead", "OperatorUpdate",
    "AgentCreate", "AgentRead", "AgentUpdate", "AgentMapRead", "AgentDistanceRead",
    "RegistrationCreate", "RegistrationRead",
    "SupportAgentIn", "SupportAgentRead", "TicketCreate", "TicketRead", "TicketUpdate",
    "TicketStatusChange", "TicketPhotoCreate", "TicketPhotoRead",
    "PaymentLineRead", "LedgerRead", "LedgerSummaryRead", "PaymentSlotRequest", "PaymentSummaryRead",
    "ChartPointRead", "DashboardRead", "DashboardStatsRead",
    "AgentPerformanceRead", "OperatorPerformanceRead", "GlobalStatsRead", "PerformanceRead",
    "PostalAddressRead", "CoordinatesRead", "PlaceRead",
]
