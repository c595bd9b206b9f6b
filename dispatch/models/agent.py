"""Field agent model: the responder dispatched on tickets."""

from __future__ import annotations

from sqlalchemy import String, Boolean, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from dispatch.models.base import Base, ULIDMixin, UpdatedAtMixin

AGENT_STATUSES = ("active", "inactive")
PERFORMANCE_LEVELS = ("poor", "good", "excellent")
VEHICLE_TYPES = ("car", "motorcycle")
SKILL_FIELDS = (
    "has_alarm_skill",
    "has_investigation_skill",
    "has_preservation_skill",
    "has_logistics_skill",
    "has_auditing_skill",
)


class AgentProfileMixin:
    """Columns shared by agents and public agent registrations."""

    name: Mapped[str] = mapped_column(String(200))
    document: Mapped[str | None] = mapped_column(String(30), nullable=True)
    phone: Mapped[str] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(9), nullable=True)
    is_armed: Mapped[bool] = mapped_column(Boolean, default=False)
    vehicle_plate: Mapped[str | None] = mapped_column(String(10), nullable=True)
    vehicle_type: Mapped[str | None] = mapped_column(String(20), nullable=True)  # car | motorcycle
    has_alarm_skill: Mapped[bool] = mapped_column(Boolean, default=False)
    has_investigation_skill: Mapped[bool] = mapped_column(Boolean, default=False)
    has_preservation_skill: Mapped[bool] = mapped_column(Boolean, default=False)
    has_logistics_skill: Mapped[bool] = mapped_column(Boolean, default=False)
    has_auditing_skill: Mapped[bool] = mapped_column(Boolean, default=False)
    pix_key: Mapped[str | None] = mapped_column(String(140), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bank_agency: Mapped[str | None] = mapped_column(String(20), nullable=True)
    bank_account: Mapped[str | None] = mapped_column(String(30), nullable=True)
    bank_account_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class Agent(Base, ULIDMixin, UpdatedAtMixin, AgentProfileMixin):
    __tablename__ = "agents"

    status: Mapped[str] = mapped_column(String(20), default="active")  # active | inactive
    performance_level: Mapped[str] = mapped_column(String(20), default="good")  # poor | good | excellent
