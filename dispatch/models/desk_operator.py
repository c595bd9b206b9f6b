"""Operator model: the dispatch desk person who handled a ticket."""

from __future__ import annotations

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from dispatch.models.base import Base, ULIDMixin, UpdatedAtMixin


class Operator(Base, ULIDMixin, UpdatedAtMixin):
    __tablename__ = "operators"

    name: Mapped[str] = mapped_column(String(200))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
