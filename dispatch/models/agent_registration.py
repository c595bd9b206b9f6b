"""Agent self-registration submitted through the public form."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from dispatch.models.agent import AgentProfileMixin
from dispatch.models.base import Base, ULIDMixin, UpdatedAtMixin


class AgentRegistration(Base, ULIDMixin, UpdatedAtMixin, AgentProfileMixin):
    __tablename__ = "agent_registrations"

    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | approved | rejected
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(26), nullable=True)
