from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...db.models.catalog import Product
from ...db.models.orders import DeliveryType, Order

ORDER_HEADERS = (
    "Order Number",
    "Customer Name",
    "Customer Phone",
    "Customer Email",
    "Order Date",
    "Delivery Type",
    "City",
    "Delivery Address/Desk",
    "Call Center Status",
    "Delivery Status",
    "Subtotal (DA)",
    "Delivery Fee (DA)",
    "Total (DA)",
    "Items",
    "Notes",
)

INVENTORY_HEADERS = (
    "Reference",
    "Name",
    "Name (Arabic)",
    "Category",
    "Price (DA)",
    "Old Price (DA)",
    "Main Stock",
    "Sizes & Quantities",
    "Total Stock",
    "Status",
    "On Sale",
    "Created Date",
)


def export_filename(prefix: str, today: date | None = None) -> str:
    return f"{prefix}-{(today or date.today()).isoformat()}.csv"


def _money(value: Decimal | None) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


def _day(value: datetime | None) -> str:
    return value.date().isoformat() if value else ""


def _write(headers: tuple[str, ...], rows: Iterable[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def order_row(order: Order) -> list[str]:
    if order.delivery_type is DeliveryType.PICKUP:
        destination = order.delivery_desk.name if order.delivery_desk else ""
    else:
        destination = order.delivery_address or ""
    items = "; ".join(
        f"{item.product.name}{f' ({item.size})' if item.size else ''} x{item.quantity}" for item in order.items
    )
    return [
        order.order_number or "",
        order.customer_name,
        order.customer_phone,
        order.customer_email or "",
        _day(order.created_at),
        order.delivery_type.value,
        order.city.name if order.city else "",
        destination,
        order.call_center_status.value,
        order.delivery_status.value,
        _money(order.subtotal),
        _money(order.delivery_fee),
        _money(order.total),
        items,
        order.notes or "",
    ]


def inventory_row(product: Product) -> list[str]:
    size_stock = sum(size.stock for size in product.sizes)
    return [
        product.reference or "",
        product.name,
        product.name_ar or "",
        product.category.name if product.category else "",
        _money(product.price),
        _money(product.old_price),
        str(product.stock),
        ", ".join(f"{size.size}: {size.stock}" for size in product.sizes),
        str(product.stock + size_stock),
        "Active" if product.is_active else "Inactive",
        "Yes" if product.is_on_sale else "No",
        _day(product.created_at),
    ]


async def export_orders_csv(session: AsyncSession) -> str:
    result = await session.execute(select(Order).order_by(Order.created_at.desc(), Order.id.desc()))
    return _write(ORDER_HEADERS, (order_row(order) for order in result.scalars().unique()))


async def export_inventory_csv(session: AsyncSession) -> str:
    result = await session.execute(select(Product).order_by(Product.created_at.desc(), Product.id.desc()))
    return _write(INVENTORY_HEADERS, (inventory_row(product) for product in result.scalars().unique()))
