"""Ticket (incident call) model plus its support responders and photos."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Float, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dispatch.models.base import Base, ULIDMixin, UpdatedAtMixin

TICKET_STATUSES = ("open", "in_progress", "completed", "cancelled")
SERVICE_TYPES = ("alarm", "investigation", "preservation", "logistics_escort")
PAYMENT_STATUSES = ("pending", "paid")


class CostMixin:
    """Per-responder cost fields and payment tracking."""

    km_start: Mapped[float | None] = mapped_column(Float, nullable=True)
    km_end: Mapped[float | None] = mapped_column(Float, nullable=True)
    toll_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    food_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    other_costs: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=Decimal("0"))


class Ticket(Base, ULIDMixin, UpdatedAtMixin, CostMixin):
    __tablename__ = "tickets"

    code: Mapped[str | None] = mapped_column(String(30), unique=True, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="open", index=True)
    service_type: Mapped[str] = mapped_column(String(30))
    client_id: Mapped[str] = mapped_column(String(26), ForeignKey("clients.id"))
    vehicle_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("vehicles.id"), nullable=True)
    plan_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("plans.id"), nullable=True)
    operator_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("operators.id"), nullable=True)
    main_agent_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("agents.id"), nullable=True)
    city: Mapped[str] = mapped_column(String(120), default="")
    state: Mapped[str] = mapped_column(String(2), default="")
    coordinates_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    coordinates_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end_datetime: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    detailed_report: Mapped[str | None] = mapped_column(Text, nullable=True)
    main_agent_payment_status: Mapped[str | None] = mapped_column(String(10), default="pending")
    main_agent_paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(26), nullable=True)

    client = relationship("Client", lazy="selectin")
    vehicle = relationship("Vehicle", lazy="selectin")
    plan = relationship("Plan", lazy="selectin")
    operator = relationship("Operator", lazy="selectin")
    main_agent = relationship("Agent", lazy="selectin")
    support_agents = relationship(
        "TicketSupportAgent",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketSupportAgent.position",
        lazy="selectin",
    )
    photos = relationship(
        "TicketPhoto", back_populates="ticket", cascade="all, delete-orphan", lazy="selectin",
    )


class TicketSupportAgent(Base, ULIDMixin, UpdatedAtMixin, CostMixin):
    __tablename__ = "ticket_support_agents"

    ticket_id: Mapped[str] = mapped_column(String(26), ForeignKey("tickets.id", ondelete="CASCADE"))
    agent_id: Mapped[str] = mapped_column(String(26), ForeignKey("agents.id"))
    position: Mapped[int] = mapped_column(Integer, default=0)
    arrival: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    departure: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_status: Mapped[str | None] = mapped_column(String(10), default="pending")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    ticket = relationship("Ticket", back_populates="support_agents")
    agent = relationship("Agent", lazy="selectin")


class TicketPhoto(Base, ULIDMixin):
    __tablename__ = "ticket_photos"

    ticket_id: Mapped[str] = mapped_column(String(26), ForeignKey("tickets.id", ondelete="CASCADE"))
    file_url: Mapped[str] = mapped_column(String(1000))
    caption: Mapped[str | None] = mapped_column(String(500), nullable=True)
    uploaded_by: Mapped[str | None] = mapped_column(String(26), nullable=True)

    ticket = relationship("Ticket", back_populates="photos")
