"""Vehicle model: a client's truck or car covered by escort/preservation calls."""

from __future__ import annotations

from sqlalchemy import String, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dispatch.models.base import Base, ULIDMixin, UpdatedAtMixin


class Vehicle(Base, ULIDMixin, UpdatedAtMixin):
    __tablename__ = "vehicles"

    client_id: Mapped[str] = mapped_column(String(26), ForeignKey("clients.id", ondelete="CASCADE"))
    description: Mapped[str] = mapped_column(String(200))
    plate_main: Mapped[str] = mapped_column(String(10))
    plate_trailer: Mapped[str | None] = mapped_column(String(10), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    client = relationship("Client", back_populates="vehicles")
