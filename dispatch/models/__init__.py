"""SQLAlchemy ORM models."""

from dispatch.models.base import Base
from dispatch.models.client import Client
from dispatch.models.vehicle import Vehicle
from dispatch.models.plan import Plan
from dispatch.models.desk_operator import Operator
from dispatch.models.agent import Agent
from dispatch.models.agent_registration import AgentRegistration
from dispatch.models.ticket import Ticket, TicketSupportAgent, TicketPhoto
from dispatch.models.auth_models import User, UserSession

__all__ = [
    "Base", "Client", "Vehicle", "Plan", "Operator",
    "Agent", "AgentRegistration",
    "Ticket", "TicketSupportAgent", "TicketPhoto",
    "User", "UserSession",
]
