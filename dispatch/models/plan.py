"""Service plan model."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dispatch.models.base import Base, ULIDMixin, UpdatedAtMixin


class Plan(Base, ULIDMixin, UpdatedAtMixin):
    __tablename__ = "plans"

    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
