from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from ...api.deps import get_carrier_client, require_operator
from ...domain.shipping import shipments
from ...domain.shipping.shipments import ParcelRequest, ShipmentFilters, TrackingEvent
from ...domain.shipping.tariff import ShipmentQuote, calculate_fees
from ...integrations.yalidine import YalidineClient
from ..v1.schemas import CalculateFeesRequest, CarrierStatusOut, CreateShipmentResponse

router = APIRouter()


@router.get("/status", response_model=CarrierStatusOut)
async def carrier_status(carrier: YalidineClient = Depends(get_carrier_client)) -> CarrierStatusOut:
    if not carrier.configured:
        return CarrierStatusOut(configured=False, message="Yalidine API not configured")
    status = await carrier.get_status()
    return CarrierStatusOut(configured=True, message="Yalidine shipping is available", rate_limits=status["rate_limits"])


@router.get("/wilayas")
async def carrier_wilayas(carrier: YalidineClient = Depends(get_carrier_client)) -> Any:
    return await carrier.get_wilayas()


@router.get("/communes")
async def carrier_communes(
    wilaya_id: int | None = Query(default=None, alias="wilayaId", gt=0),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> Any:
    return await carrier.get_communes(wilaya_id)


@router.get("/centers")
async def carrier_centers(
    wilaya_id: int | None = Query(default=None, alias="wilayaId", gt=0),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> Any:
    return await carrier.get_centers(wilaya_id)


@router.post("/calculate-fees", response_model=ShipmentQuote)
async def calculate_shipping_fees(
    payload: CalculateFeesRequest,
    carrier: YalidineClient = Depends(get_carrier_client),
) -> ShipmentQuote:
    return await calculate_fees(
        carrier,
        payload.from_wilaya_id,
        payload.to_wilaya_id,
        weight=payload.weight,
        length=payload.length,
        width=payload.width,
        height=payload.height,
        declared_value=payload.declared_value,
        commune_name=payload.commune_name,
    )


@router.post("/create-shipment", response_model=CreateShipmentResponse, dependencies=[Depends(require_operator)])
async def create_shipment(
    payload: ParcelRequest,
    carrier: YalidineClient = Depends(get_carrier_client),
) -> CreateShipmentResponse:
    result = await shipments.create_shipment(carrier, payload)
    return CreateShipmentResponse(**result.model_dump())


@router.get("/shipment/{tracking}", dependencies=[Depends(require_operator)])
async def get_shipment(tracking: str, carrier: YalidineClient = Depends(get_carrier_client)) -> Any:
    return await shipments.get_shipment(carrier, tracking)


@router.patch("/shipment/{tracking}", dependencies=[Depends(require_operator)])
async def update_shipment(
    tracking: str,
    data: dict[str, Any] = Body(...),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> Any:
    return await shipments.update_shipment(carrier, tracking, data)


@router.delete("/shipment/{tracking}", dependencies=[Depends(require_operator)])
async def delete_shipment(tracking: str, carrier: YalidineClient = Depends(get_carrier_client)) -> Any:
    return await shipments.delete_shipment(carrier, tracking)


@router.get("/tracking/{tracking}", response_model=list[TrackingEvent])
async def tracking_history(tracking: str, carrier: YalidineClient = Depends(get_carrier_client)) -> list[TrackingEvent]:
    return await shipments.get_tracking_history(carrier, tracking)


@router.get("/shipments", dependencies=[Depends(require_operator)])
async def list_shipments(
    status: str | None = None,
    tracking: str | None = None,
    order_id: str | None = Query(default=None, alias="orderId"),
    to_wilaya_id: int | None = Query(default=None, alias="toWilayaId"),
    to_commune_name: str | None = Query(default=None, alias="toCommuneName"),
    is_stopdesk: bool | None = Query(default=None, alias="isStopdesk"),
    freeshipping: bool | None = None,
    date_creation: str | None = Query(default=None, alias="dateCreation"),
    date_last_status: str | None = Query(default=None, alias="dateLastStatus"),
    payment_status: str | None = Query(default=None, alias="paymentStatus"),
    month: str | None = None,
    page: int | None = Query(default=None, ge=1),
    carrier: YalidineClient = Depends(get_carrier_client),
) -> Any:
    filters = ShipmentFilters(
        status=status,
        tracking=tracking,
        order_id=order_id,
        to_wilaya_id=to_wilaya_id,
        to_commune_name=to_commune_name,
        is_stopdesk=is_stopdesk,
        freeshipping=freeshipping,
        date_creation=date_creation,
        date_last_status=date_last_status,
        payment_status=payment_status,
        month=month,
        page=page,
    )
    return await shipments.list_shipments(carrier, filters)
