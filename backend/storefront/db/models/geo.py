from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:  # pragma: no cover
    from .orders import Order


class City(Base):
    """Delivery city, one per wilaya; ``code`` mirrors the wilaya code."""

    __tablename__ = "cities"

    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name_ar: Mapped[str | None] = mapped_column(String(128))
    code: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("500"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    delivery_desks: Mapped[List["DeliveryDesk"]] = relationship(back_populates="city", lazy="selectin")
    orders: Mapped[List["Order"]] = relationship(back_populates="city", lazy="raise")


class DeliveryDesk(Base):
    __tablename__ = "delivery_desks"

    city_id: Mapped[int] = mapped_column(ForeignKey("cities.id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    name_ar: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str] = mapped_column(String(512), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    # Carrier pickup-center id; used as ``stopdesk_id`` on parcels.
    external_id: Mapped[str | None] = mapped_column(String(64), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    city: Mapped[City] = relationship(back_populates="delivery_desks", lazy="joined")
