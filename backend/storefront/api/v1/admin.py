from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ...api.deps import (
    get_carrier_client,
    get_session,
    require_admin,
    require_confirmation,
    require_delivery,
    require_operator,
)
from ...core.errors import Forbidden
from ...core.security import OperatorRole
from ...db.models.orders import CallCenterStatus, DeliveryStatus
from ...domain.geo.resolver import list_delivery_desks
from ...domain.orders import lifecycle, service
from ...domain.orders.export import export_filename, export_inventory_csv, export_orders_csv
from ...domain.orders.schemas import (
    OrderCancelRequest,
    OrderItemAddRequest,
    OrderItemQuantityRequest,
    OrderNoteRequest,
    OrderStatusUpdateRequest,
)
from ...integrations.yalidine import YalidineClient
from ..v1.schemas import (
    DeliveryDeskWithCityOut,
    OrderConfirmResponse,
    OrderListResponse,
    OrderOut,
    OrderStatusResponse,
    Pagination,
    ShipmentRetryResponse,
)

router = APIRouter()

CALL_CENTER_ROLES = frozenset({OperatorRole.ADMIN, OperatorRole.CONFIRMATRICE})
DELIVERY_ROLES = frozenset({OperatorRole.ADMIN, OperatorRole.AGENT_LIVRAISON})


def _csv_response(content: str, prefix: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(prefix, date.today())}"'},
    )


@router.get("/orders/export", dependencies=[Depends(require_admin)])
async def export_orders(session: AsyncSession = Depends(get_session)) -> Response:
    return _csv_response(await export_orders_csv(session), "orders")


@router.get("/inventory/export", dependencies=[Depends(require_admin)])
async def export_inventory(session: AsyncSession = Depends(get_session)) -> Response:
    return _csv_response(await export_inventory_csv(session), "inventory")


@router.get("/delivery-desks", response_model=list[DeliveryDeskWithCityOut], dependencies=[Depends(require_operator)])
async def delivery_desks(session: AsyncSession = Depends(get_session)) -> list[DeliveryDeskWithCityOut]:
    desks = await list_delivery_desks(session)
    return [DeliveryDeskWithCityOut.model_validate(desk) for desk in desks]


@router.get("/orders", response_model=OrderListResponse, dependencies=[Depends(require_operator)])
async def list_orders(
    status: CallCenterStatus | None = None,
    delivery_status: DeliveryStatus | None = Query(default=None, alias="deliveryStatus"),
    search: str | None = None,
    confirmed_only: bool = Query(default=False, alias="confirmedOnly"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> OrderListResponse:
    orders, total = await service.list_orders(
        session,
        status=status,
        delivery_status=delivery_status,
        search=search,
        confirmed_only=confirmed_only,
        page=page,
        limit=limit,
    )
    return OrderListResponse(
        orders=[OrderOut.model_validate(order) for order in orders],
        pagination=Pagination(page=page, limit=limit, total=total, pages=service.page_count(total, limit)),
    )


@router.get("/orders/{order_id}", response_model=OrderOut, dependencies=[Depends(require_operator)])
async def get_order(order_id: int, session: AsyncSession = Depends(get_session)) -> OrderOut:
    return OrderOut.model_validate(await service.get_order(session, order_id))


@router.patch("/orders/{order_id}/status", response_model=OrderStatusResponse)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdateRequest,
    role: OperatorRole = Depends(require_operator),
    session: AsyncSession = Depends(get_session),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> OrderStatusResponse:
    if payload.call_center_status is not None and role not in CALL_CENTER_ROLES:
        raise Forbidden()
    if payload.delivery_status is not None and role not in DELIVERY_ROLES:
        raise Forbidden()
    order, shipment_error = await lifecycle.apply_status_update(
        session,
        order_id,
        carrier,
        call_center_status=payload.call_center_status,
        delivery_status=payload.delivery_status,
        note=payload.notes,
        note_tag=role.value,
    )
    return OrderStatusResponse.model_validate(order).model_copy(update={"shipment_error": shipment_error})


@router.post("/orders/{order_id}/confirm", response_model=OrderConfirmResponse, dependencies=[Depends(require_confirmation)])
async def confirm_order(
    order_id: int,
    payload: OrderNoteRequest | None = None,
    session: AsyncSession = Depends(get_session),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> OrderConfirmResponse:
    order, shipment_error = await lifecycle.confirm_order(
        session, order_id, carrier, notes=payload.notes if payload else None
    )
    message = "Order confirmed" if shipment_error is None else "Order confirmed, shipment not created"
    return OrderConfirmResponse(message=message, order=OrderOut.model_validate(order), shipment_error=shipment_error)


@router.post("/orders/{order_id}/cancel", response_model=OrderOut, dependencies=[Depends(require_confirmation)])
async def cancel_order(
    order_id: int,
    payload: OrderCancelRequest | None = None,
    session: AsyncSession = Depends(get_session),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> OrderOut:
    order = await lifecycle.cancel_order(
        session, order_id, reason=payload.reason if payload else None, carrier=carrier
    )
    return OrderOut.model_validate(order)


@router.post("/orders/{order_id}/no-response", response_model=OrderOut, dependencies=[Depends(require_confirmation)])
async def mark_no_response(
    order_id: int,
    payload: OrderNoteRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> OrderOut:
    order = await lifecycle.mark_no_response(session, order_id, notes=payload.notes if payload else None)
    return OrderOut.model_validate(order)


@router.post("/orders/{order_id}/shipment", response_model=ShipmentRetryResponse, dependencies=[Depends(require_confirmation)])
async def retry_shipment(
    order_id: int,
    session: AsyncSession = Depends(get_session),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> ShipmentRetryResponse:
    order, shipment = await lifecycle.retry_shipment(session, order_id, carrier)
    return ShipmentRetryResponse(message="Shipment created", order=OrderOut.model_validate(order), shipment=shipment)


@router.post("/orders/{order_id}/ready", response_model=OrderOut, dependencies=[Depends(require_delivery)])
async def mark_ready(order_id: int, session: AsyncSession = Depends(get_session)) -> OrderOut:
    return OrderOut.model_validate(await lifecycle.mark_ready(session, order_id))


@router.post("/orders/{order_id}/in-transit", response_model=OrderOut, dependencies=[Depends(require_delivery)])
async def start_delivery(order_id: int, session: AsyncSession = Depends(get_session)) -> OrderOut:
    return OrderOut.model_validate(await lifecycle.start_delivery(session, order_id))


@router.post("/orders/{order_id}/delivered", response_model=OrderOut, dependencies=[Depends(require_delivery)])
async def complete_delivery(
    order_id: int,
    payload: OrderNoteRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> OrderOut:
    order = await lifecycle.complete_delivery(session, order_id, notes=payload.notes if payload else None)
    return OrderOut.model_validate(order)


@router.post("/orders/{order_id}/items", response_model=OrderOut, dependencies=[Depends(require_confirmation)])
async def add_item(
    order_id: int,
    payload: OrderItemAddRequest,
    session: AsyncSession = Depends(get_session),
) -> OrderOut:
    return OrderOut.model_validate(await service.add_item(session, order_id, payload))


@router.patch("/orders/{order_id}/items/{item_id}", response_model=OrderOut, dependencies=[Depends(require_confirmation)])
async def update_item(
    order_id: int,
    item_id: int,
    payload: OrderItemQuantityRequest,
    session: AsyncSession = Depends(get_session),
) -> OrderOut:
    return OrderOut.model_validate(await service.update_item_quantity(session, order_id, item_id, payload.quantity))


@router.delete("/orders/{order_id}/items/{item_id}", response_model=OrderOut, dependencies=[Depends(require_confirmation)])
async def remove_item(order_id: int, item_id: int, session: AsyncSession = Depends(get_session)) -> OrderOut:
    return OrderOut.model_validate(await service.remove_item(session, order_id, item_id))
