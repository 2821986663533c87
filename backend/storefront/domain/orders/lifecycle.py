"""Operator-driven order state changes.

Two independent state machines run on every order: the call-center status
(did the customer confirm?) and the delivery status (where is the parcel?).
The parcel may only start moving once the order is confirmed, and a confirmed
order may only be canceled while the parcel is still at the shop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from ...core.config import settings
from ...core.errors import CarrierNotConfigured, InvalidStatusTransition, OrderLocked, StorefrontError
from ...core.logging import get_logger
from ...db.models.orders import CallCenterStatus, DeliveryStatus, Order
from ..shipping.shipments import ShipmentResult, delete_shipment, ship_order
from .service import append_note, get_order
from .stock import restock

if TYPE_CHECKING:  # pragma: no cover
    from ...integrations.yalidine.client import YalidineClient

logger = get_logger(__name__)

_OPEN_TARGETS = frozenset(
    {
        CallCenterStatus.CONFIRMED,
        CallCenterStatus.CANCELED,
        CallCenterStatus.PENDING,
        CallCenterStatus.DOUBLE_ORDER,
        CallCenterStatus.DELAYED,
        CallCenterStatus.NO_RESPONSE,
    }
)

CALL_CENTER_TRANSITIONS: dict[CallCenterStatus, frozenset[CallCenterStatus]] = {
    CallCenterStatus.NEW: _OPEN_TARGETS,
    CallCenterStatus.PENDING: _OPEN_TARGETS,
    CallCenterStatus.DELAYED: _OPEN_TARGETS,
    CallCenterStatus.NO_RESPONSE: _OPEN_TARGETS,
    CallCenterStatus.CONFIRMED: frozenset({CallCenterStatus.CANCELED}),
    CallCenterStatus.CANCELED: frozenset(),
    CallCenterStatus.DOUBLE_ORDER: frozenset(),
}

DELIVERY_NEXT_STEP: dict[DeliveryStatus, DeliveryStatus] = {
    DeliveryStatus.NOT_READY: DeliveryStatus.READY,
    DeliveryStatus.READY: DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.IN_TRANSIT: DeliveryStatus.DONE,
}

# Entering one of these gives the order's units back to the shelf.
RELEASING_STATUSES = frozenset({CallCenterStatus.CANCELED, CallCenterStatus.DOUBLE_ORDER})


def can_change_call_center_status(order: Order, target: CallCenterStatus) -> bool:
    if target == order.call_center_status:
        return True
    if target not in CALL_CENTER_TRANSITIONS[order.call_center_status]:
        return False
    if order.call_center_status is CallCenterStatus.CONFIRMED:
        return order.delivery_status is DeliveryStatus.NOT_READY
    return True


def can_change_delivery_status(order: Order, target: DeliveryStatus) -> bool:
    if target == order.delivery_status:
        return True
    if DELIVERY_NEXT_STEP.get(order.delivery_status) is not target:
        return False
    return order.call_center_status is CallCenterStatus.CONFIRMED


async def _release_stock(session: AsyncSession, order: Order) -> None:
    for item in order.items:
        await restock(session, product_id=item.product_id, size_id=item.size_id, quantity=item.quantity)


async def update_statuses(
    session: AsyncSession,
    order_id: int,
    *,
    call_center_status: CallCenterStatus | None = None,
    delivery_status: DeliveryStatus | None = None,
    note: str | None = None,
    note_tag: str = "NOTE",
) -> Order:
    order = await get_order(session, order_id)
    previous = (order.call_center_status, order.delivery_status)

    if call_center_status is not None and call_center_status != order.call_center_status:
        if not can_change_call_center_status(order, call_center_status):
            raise InvalidStatusTransition("callCenterStatus", order.call_center_status.value, call_center_status.value)
        if call_center_status in RELEASING_STATUSES and settings.restock_on_cancel:
            await _release_stock(session, order)
        order.call_center_status = call_center_status

    if delivery_status is not None and delivery_status != order.delivery_status:
        if not can_change_delivery_status(order, delivery_status):
            await session.rollback()
            raise InvalidStatusTransition("deliveryStatus", order.delivery_status.value, delivery_status.value)
        order.delivery_status = delivery_status

    append_note(order, note_tag, note)
    await session.commit()
    logger.info(
        "order_status_changed",
        extra={
            "order_id": order_id,
            "from_call_center_status": previous[0].value,
            "to_call_center_status": order.call_center_status.value,
            "from_delivery_status": previous[1].value,
            "to_delivery_status": order.delivery_status.value,
        },
    )
    return await get_order(session, order_id)


async def _ship_confirmed(
    session: AsyncSession, order: Order, carrier: "YalidineClient | None"
) -> tuple[Order, str | None]:
    order_id = order.id
    if order.tracking_number:
        return order, None
    if carrier is None or not carrier.configured:
        logger.warning("shipment_skipped_carrier_not_configured", extra={"order_id": order_id})
        return order, CarrierNotConfigured.default_message

    try:
        await ship_order(session, carrier, order)
    except StorefrontError as exc:
        await session.rollback()
        logger.error(
            "shipment_creation_failed",
            extra={"order_id": order_id, "error": exc.message, "status_code": exc.status_code},
        )
        return await get_order(session, order_id), exc.message
    return await get_order(session, order_id), None


async def _withdraw_shipment(
    session: AsyncSession, order: Order, carrier: "YalidineClient | None"
) -> tuple[Order, str | None]:
    """Delete the carrier parcel of a released order.

    On success the tracking fields are cleared. On failure they are kept and
    a note tells the operator the parcel is still registered.
    """

    order_id = order.id
    tracking = order.tracking_number
    if carrier is None or not carrier.configured:
        error = CarrierNotConfigured.default_message
    else:
        try:
            await delete_shipment(carrier, tracking)
        except StorefrontError as exc:
            error = exc.message
        else:
            order.tracking_number = None
            order.yalidine_shipment_id = None
            append_note(order, "YALIDINE", f"Shipment deleted: {tracking}")
            await session.commit()
            logger.info("shipment_withdrawn", extra={"order_id": order_id, "tracking": tracking})
            return await get_order(session, order_id), None

    append_note(order, "YALIDINE", f"Shipment {tracking} is still registered with the carrier: {error}")
    await session.commit()
    logger.warning("shipment_withdrawal_failed", extra={"order_id": order_id, "tracking": tracking, "error": error})
    return await get_order(session, order_id), error


async def apply_status_update(
    session: AsyncSession,
    order_id: int,
    carrier: "YalidineClient | None",
    *,
    call_center_status: CallCenterStatus | None = None,
    delivery_status: DeliveryStatus | None = None,
    note: str | None = None,
    note_tag: str = "NOTE",
) -> tuple[Order, str | None]:
    """Change statuses, then sync the carrier parcel with the new call-center status.

    Entering CONFIRMED creates the shipment; entering CANCELED or DOUBLE_ORDER
    deletes an existing one. The status change is committed first, so a carrier
    failure never undoes it and is returned as the second element instead.
    """

    order = await update_statuses(
        session,
        order_id,
        call_center_status=call_center_status,
        delivery_status=delivery_status,
        note=note,
        note_tag=note_tag,
    )
    if call_center_status is CallCenterStatus.CONFIRMED:
        return await _ship_confirmed(session, order, carrier)
    if call_center_status in RELEASING_STATUSES and order.tracking_number:
        return await _withdraw_shipment(session, order, carrier)
    return order, None


async def confirm_order(
    session: AsyncSession,
    order_id: int,
    carrier: "YalidineClient | None",
    notes: str | None = None,
) -> tuple[Order, str | None]:
    """Confirm the order, then try to hand it to the carrier.

    When shipment creation fails the order stays confirmed without a tracking
    number and the error message is returned so the operator can retry later.
    """

    return await apply_status_update(
        session,
        order_id,
        carrier,
        call_center_status=CallCenterStatus.CONFIRMED,
        note=notes,
        note_tag="CONFIRMED",
    )


async def retry_shipment(session: AsyncSession, order_id: int, carrier: "YalidineClient") -> tuple[Order, ShipmentResult]:
    order = await get_order(session, order_id)
    if order.call_center_status is not CallCenterStatus.CONFIRMED:
        raise OrderLocked("Only confirmed orders can be shipped")
    if order.tracking_number:
        raise OrderLocked(f"Order already shipped with tracking {order.tracking_number}")
    try:
        result = await ship_order(session, carrier, order)
    except StorefrontError:
        await session.rollback()
        raise
    return await get_order(session, order_id), result


async def cancel_order(
    session: AsyncSession,
    order_id: int,
    reason: str | None = None,
    carrier: "YalidineClient | None" = None,
) -> Order:
    order, _ = await apply_status_update(
        session,
        order_id,
        carrier,
        call_center_status=CallCenterStatus.CANCELED,
        note=reason,
        note_tag="CANCELED",
    )
    return order


async def mark_no_response(session: AsyncSession, order_id: int, notes: str | None = None) -> Order:
    return await update_statuses(
        session, order_id, call_center_status=CallCenterStatus.NO_RESPONSE, note=notes, note_tag="NO_RESPONSE"
    )


async def mark_ready(session: AsyncSession, order_id: int) -> Order:
    return await update_statuses(session, order_id, delivery_status=DeliveryStatus.READY)


async def start_delivery(session: AsyncSession, order_id: int) -> Order:
    return await update_statuses(session, order_id, delivery_status=DeliveryStatus.IN_TRANSIT)


async def complete_delivery(session: AsyncSession, order_id: int, notes: str | None = None) -> Order:
    return await update_statuses(
        session, order_id, delivery_status=DeliveryStatus.DONE, note=notes, note_tag="DELIVERED"
    )
