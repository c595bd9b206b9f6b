"""Client model: the company a ticket is opened for."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Text, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dispatch.models.base import Base, ULIDMixin, UpdatedAtMixin


class Client(Base, ULIDMixin, UpdatedAtMixin):
    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(200))
    document: Mapped[str] = mapped_column(String(30))
    contact_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str] = mapped_column(String(120))
    state: Mapped[str] = mapped_column(String(2))
    postal_code: Mapped[str | None] = mapped_column(String(9), nullable=True)
    default_lat: Mapped[Decimal | None] = mapped_column(Numeric(10, 8), nullable=True)
    default_lng: Mapped[Decimal | None] = mapped_column(Numeric(11, 8), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    vehicles = relationship(
        "Vehicle", back_populates="client", cascade="all, delete-orphan", lazy="selectin",
    )
