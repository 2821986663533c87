from __future__ import annotations

from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:  # pragma: no cover
    from .catalog import Product, ProductSize
    from .geo import City, DeliveryDesk


class DeliveryType(str, PyEnum):
    HOME_DELIVERY = "HOME_DELIVERY"
    PICKUP = "PICKUP"


class CallCenterStatus(str, PyEnum):
    NEW = "NEW"
    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"
    CANCELED = "CANCELED"
    DOUBLE_ORDER = "DOUBLE_ORDER"
    DELAYED = "DELAYED"
    NO_RESPONSE = "NO_RESPONSE"


class DeliveryStatus(str, PyEnum):
    NOT_READY = "NOT_READY"
    READY = "READY"
    IN_TRANSIT = "IN_TRANSIT"
    DONE = "DONE"


class Order(Base):
    __tablename__ = "orders"

    # Assigned from the primary key inside the creating transaction.
    order_number: Mapped[str | None] = mapped_column(String(32), unique=True, index=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    customer_email: Mapped[str | None] = mapped_column(String(255))
    delivery_type: Mapped[DeliveryType] = mapped_column(Enum(DeliveryType), nullable=False)
    delivery_address: Mapped[str | None] = mapped_column(String(512))
    city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), index=True, nullable=False)
    delivery_desk_id: Mapped[int | None] = mapped_column(ForeignKey("delivery_desks.id", ondelete="SET NULL"))
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    call_center_status: Mapped[CallCenterStatus] = mapped_column(
        Enum(CallCenterStatus), default=CallCenterStatus.NEW, nullable=False, index=True
    )
    delivery_status: Mapped[DeliveryStatus] = mapped_column(
        Enum(DeliveryStatus), default=DeliveryStatus.NOT_READY, nullable=False, index=True
    )
    tracking_number: Mapped[str | None] = mapped_column(String(64), index=True)
    yalidine_shipment_id: Mapped[str | None] = mapped_column(String(64))

    city: Mapped["City"] = relationship(back_populates="orders", lazy="selectin")
    delivery_desk: Mapped[Optional["DeliveryDesk"]] = relationship(lazy="selectin")
    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", lazy="selectin", order_by="OrderItem.id"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True, nullable=False)
    size_id: Mapped[int | None] = mapped_column(ForeignKey("product_sizes.id", ondelete="SET NULL"))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Snapshots taken when the line was added.
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    size: Mapped[str | None] = mapped_column(String(32))

    order: Mapped[Order] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship(lazy="selectin")
    product_size: Mapped[Optional["ProductSize"]] = relationship(lazy="selectin")
