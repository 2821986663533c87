"""Order assembly, lookups and line editing.

Checkout validates every line before writing anything, then inserts the order
and takes stock inside one transaction. Status changes live in ``lifecycle``.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ...core.config import settings
from ...core.errors import (
    InsufficientStock,
    OrderCreationFailed,
    OrderItemNotFound,
    OrderLocked,
    OrderNotFound,
    ProductNotFound,
    SizeNotFound,
    StorefrontError,
)
from ...core.logging import get_logger
from ...db.models.catalog import Product, ProductSize
from ...db.models.geo import DeliveryDesk
from ...db.models.orders import CallCenterStatus, DeliveryStatus, DeliveryType, Order, OrderItem
from ..geo.resolver import resolve_city, resolve_or_create_delivery_desk
from .schemas import OrderCreateRequest, OrderLineRequest
from .stock import decrement_stock, restock

logger = get_logger(__name__)

EDITABLE_STATUSES = frozenset(
    {CallCenterStatus.NEW, CallCenterStatus.PENDING, CallCenterStatus.DELAYED, CallCenterStatus.NO_RESPONSE}
)


@dataclass
class PricedLine:
    product_id: int
    product_name: str
    size_id: int | None
    size_label: str | None
    quantity: int
    price: Decimal


def format_order_number(order_id: int) -> str:
    return f"ORD-{order_id:06d}"


def append_note(order: Order, tag: str, text: str | None) -> None:
    if not text:
        return
    line = f"[{tag}] {text}"
    order.notes = f"{order.notes}\n{line}" if order.notes else line


def recompute_totals(order: Order) -> None:
    order.subtotal = sum((item.price * item.quantity for item in order.items), Decimal("0"))
    order.total = order.subtotal + (order.delivery_fee or Decimal("0"))


async def _load_sellable(session: AsyncSession, product_id: int, size_id: int | None) -> tuple[Product, ProductSize | None]:
    product = await session.get(Product, product_id, populate_existing=True)
    if product is None or not product.is_active:
        raise ProductNotFound(product_id)
    if size_id is None:
        return product, None
    size = next((candidate for candidate in product.sizes if candidate.id == size_id), None)
    if size is None:
        raise SizeNotFound(product.name)
    return product, size


async def price_lines(session: AsyncSession, lines: Sequence[OrderLineRequest]) -> list[PricedLine]:
    """Validate every requested line and snapshot its price and size label."""

    priced: list[PricedLine] = []
    demand: dict[tuple[int, int | None], int] = defaultdict(int)
    for line in lines:
        product, size = await _load_sellable(session, line.product_id, line.size_id)
        available = size.stock if size is not None else product.stock
        # Repeated lines for the same SKU draw on the same stock.
        demand[(product.id, line.size_id)] += line.quantity
        if available < demand[(product.id, line.size_id)]:
            raise InsufficientStock(product.name)
        priced.append(
            PricedLine(
                product_id=product.id,
                product_name=product.name,
                size_id=size.id if size is not None else None,
                size_label=size.size if size is not None else None,
                quantity=line.quantity,
                price=product.price,
            )
        )
    return priced


async def _resolve_pickup_desk(
    session: AsyncSession, city_id: int, city_name: str, payload: OrderCreateRequest
) -> int | None:
    desk_ref = payload.delivery_desk_id
    if desk_ref:
        if desk_ref.isdigit():
            desk = await session.get(DeliveryDesk, int(desk_ref))
            if desk is not None and desk.is_active and desk.city_id == city_id:
                return desk.id
        result = await session.execute(
            select(DeliveryDesk.id)
            .where(
                DeliveryDesk.city_id == city_id,
                DeliveryDesk.external_id == desk_ref,
                DeliveryDesk.is_active.is_(True),
            )
            .order_by(DeliveryDesk.id)
            .limit(1)
        )
        desk_id = result.scalar_one_or_none()
        if desk_id is not None:
            return desk_id

    desk_name = payload.delivery_desk_name or f"{settings.carrier_name} {city_name}"
    return await resolve_or_create_delivery_desk(session, city_id, desk_ref, desk_name)


async def create_order(session: AsyncSession, payload: OrderCreateRequest) -> Order:
    try:
        city = await resolve_city(session, payload.wilaya_id)
        city_id, city_name, city_fee = city.id, city.name, city.delivery_fee

        desk_id: int | None = None
        if payload.delivery_type is DeliveryType.PICKUP:
            desk_id = await _resolve_pickup_desk(session, city_id, city_name, payload)

        lines = await price_lines(session, payload.items)
        subtotal = sum((line.price * line.quantity for line in lines), Decimal("0"))
        delivery_fee = city_fee if payload.delivery_type is DeliveryType.HOME_DELIVERY else Decimal("0")

        order = Order(
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
            customer_email=payload.customer_email,
            delivery_type=payload.delivery_type,
            delivery_address=payload.delivery_address,
            city_id=city_id,
            delivery_desk_id=desk_id,
            delivery_fee=delivery_fee,
            subtotal=subtotal,
            total=subtotal + delivery_fee,
            notes=payload.notes,
            call_center_status=CallCenterStatus.NEW,
            delivery_status=DeliveryStatus.NOT_READY,
            items=[
                OrderItem(
                    product_id=line.product_id,
                    size_id=line.size_id,
                    quantity=line.quantity,
                    price=line.price,
                    size=line.size_label,
                )
                for line in lines
            ],
        )
        session.add(order)
        await session.flush()
        order_id = order.id
        order.order_number = format_order_number(order_id)

        for line in lines:
            await decrement_stock(
                session,
                product_id=line.product_id,
                size_id=line.size_id,
                quantity=line.quantity,
                product_name=line.product_name,
            )
        await session.commit()
    except StorefrontError:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("order_creation_failed", extra={"wilaya_id": payload.wilaya_id})
        raise OrderCreationFailed() from exc

    logger.info(
        "order_created",
        extra={
            "order_id": order_id,
            "order_number": format_order_number(order_id),
            "city_id": city_id,
            "delivery_type": payload.delivery_type.value,
            "total": str(subtotal + delivery_fee),
        },
    )
    return await get_order(session, order_id)


async def get_order(session: AsyncSession, order_id: int) -> Order:
    result = await session.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.city),
            selectinload(Order.delivery_desk),
        )
        .execution_options(populate_existing=True)
    )
    order = result.scalars().first()
    if order is None:
        raise OrderNotFound()
    return order


async def list_orders(
    session: AsyncSession,
    *,
    status: CallCenterStatus | None = None,
    delivery_status: DeliveryStatus | None = None,
    search: str | None = None,
    confirmed_only: bool = False,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Order], int]:
    conditions = []
    if confirmed_only:
        conditions.append(Order.call_center_status == CallCenterStatus.CONFIRMED)
    elif status is not None:
        conditions.append(Order.call_center_status == status)
    if delivery_status is not None:
        conditions.append(Order.delivery_status == delivery_status)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(
                Order.order_number.ilike(pattern),
                Order.customer_name.ilike(pattern),
                Order.customer_phone.ilike(pattern),
                Order.customer_email.ilike(pattern),
            )
        )

    total = await session.scalar(select(func.count(Order.id)).where(*conditions))
    result = await session.execute(
        select(Order)
        .where(*conditions)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().unique()), int(total or 0)


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def _ensure_editable(order: Order) -> None:
    if order.call_center_status not in EDITABLE_STATUSES or order.delivery_status is not DeliveryStatus.NOT_READY:
        raise OrderLocked(f"Order {order.order_number} can no longer be modified")


def _find_item(order: Order, item_id: int) -> OrderItem:
    item = next((candidate for candidate in order.items if candidate.id == item_id), None)
    if item is None:
        raise OrderItemNotFound()
    return item


async def _commit_edit(session: AsyncSession, order: Order, event: str, **context: object) -> Order:
    order_id = order.id
    recompute_totals(order)
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("order_edit_failed", extra={"order_id": order_id})
        raise
    logger.info(event, extra={"order_id": order_id, **context})
    return await get_order(session, order_id)


async def add_item(session: AsyncSession, order_id: int, line: OrderLineRequest) -> Order:
    order = await get_order(session, order_id)
    _ensure_editable(order)
    try:
        product, size = await _load_sellable(session, line.product_id, line.size_id)
        await decrement_stock(
            session,
            product_id=product.id,
            size_id=line.size_id,
            quantity=line.quantity,
            product_name=product.name,
        )
        order.items.append(
            OrderItem(
                product_id=product.id,
                size_id=line.size_id,
                quantity=line.quantity,
                price=product.price,
                size=size.size if size is not None else None,
            )
        )
        await session.flush()
    except StorefrontError:
        await session.rollback()
        raise
    return await _commit_edit(session, order, "order_item_added", product_id=line.product_id, quantity=line.quantity)


async def update_item_quantity(session: AsyncSession, order_id: int, item_id: int, quantity: int) -> Order:
    order = await get_order(session, order_id)
    _ensure_editable(order)
    item = _find_item(order, item_id)
    delta = quantity - item.quantity
    try:
        if delta > 0:
            await decrement_stock(
                session,
                product_id=item.product_id,
                size_id=item.size_id,
                quantity=delta,
                product_name=item.product.name,
            )
        elif delta < 0:
            await restock(session, product_id=item.product_id, size_id=item.size_id, quantity=-delta)
    except StorefrontError:
        await session.rollback()
        raise
    item.quantity = quantity
    return await _commit_edit(session, order, "order_item_updated", item_id=item_id, quantity=quantity)


async def remove_item(session: AsyncSession, order_id: int, item_id: int) -> Order:
    order = await get_order(session, order_id)
    _ensure_editable(order)
    item = _find_item(order, item_id)
    if len(order.items) == 1:
        raise OrderLocked("An order must keep at least one item; cancel it instead")
    await restock(session, product_id=item.product_id, size_id=item.size_id, quantity=item.quantity)
    order.items.remove(item)
    await session.flush()
    return await _commit_edit(session, order, "order_item_removed", item_id=item_id)
