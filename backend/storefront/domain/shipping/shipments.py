from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Mapping

from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.camel import CamelModel
from ...core.config import settings
from ...core.errors import CarrierRejected, CarrierResponseError, InvalidPhoneNumber
from ...core.logging import get_logger
from ...db.models.orders import DeliveryType, Order
from ..geo import wilayas
from ..orders.service import append_note
from .tariff import aggregate_parcel

if TYPE_CHECKING:  # pragma: no cover
    from ...integrations.yalidine.client import YalidineClient

logger = get_logger(__name__)

MOBILE_PATTERN = re.compile(r"^0[5-7][0-9]{8}$")
LANDLINE_PATTERN = re.compile(r"^0[2-4][0-9]{7}$")


class ParcelRequest(CamelModel):
    order_id: str = Field(min_length=1)
    customer_name: str = Field(min_length=1)
    customer_phone: str = Field(min_length=1)
    customer_address: str = Field(min_length=1)
    from_wilaya_name: str = Field(min_length=1)
    to_wilaya_name: str = Field(min_length=1)
    to_commune_name: str = Field(min_length=1)
    product_list: str = Field(min_length=1)
    price: float = Field(gt=0)
    weight: float = Field(gt=0)
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    is_stop_desk: bool = False
    stop_desk_id: int | None = Field(default=None, gt=0)
    do_insurance: bool = False
    declared_value: float | None = Field(default=None, gt=0)
    freeshipping: bool = False
    has_exchange: bool = False
    product_to_collect: str | None = None


class ShipmentResult(CamelModel):
    tracking: str
    order_id: str
    label: str | None = None
    import_id: int | str | None = None


class TrackingEvent(CamelModel):
    date: str | None
    status: str | None
    reason: str | None
    location: str | None


class ShipmentFilters(CamelModel):
    status: str | None = None
    tracking: str | None = None
    order_id: str | None = None
    to_wilaya_id: int | None = None
    to_commune_name: str | None = None
    is_stopdesk: bool | None = None
    freeshipping: bool | None = None
    date_creation: str | None = None
    date_last_status: str | None = None
    payment_status: str | None = None
    month: str | None = None
    page: int | None = Field(default=None, ge=1)

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            params[key] = str(value).lower() if isinstance(value, bool) else value
        return params


def is_valid_phone_number(phone: str | None) -> bool:
    if not phone:
        return False
    return bool(MOBILE_PATTERN.match(phone) or LANDLINE_PATTERN.match(phone))


def validate_phone_number(phone: str) -> str:
    phone = (phone or "").strip()
    if not is_valid_phone_number(phone):
        raise InvalidPhoneNumber(phone)
    return phone


def format_parcel(parcel: ParcelRequest) -> dict[str, Any]:
    """Translate a parcel into the carrier's field names and integer units."""

    firstname, _, familyname = parcel.customer_name.strip().partition(" ")
    declared = parcel.declared_value or 0
    return {
        "order_id": parcel.order_id,
        "from_wilaya_name": parcel.from_wilaya_name,
        "firstname": firstname,
        "familyname": familyname.strip(),
        "contact_phone": parcel.customer_phone,
        "address": parcel.customer_address,
        "to_commune_name": parcel.to_commune_name,
        "to_wilaya_name": parcel.to_wilaya_name,
        "product_list": parcel.product_list,
        "price": round(parcel.price),
        "do_insurance": parcel.do_insurance,
        "declared_value": round(declared),
        "length": round(parcel.length),
        "width": round(parcel.width),
        "height": round(parcel.height),
        "weight": round(parcel.weight),
        "freeshipping": parcel.freeshipping,
        "is_stopdesk": parcel.is_stop_desk,
        "stopdesk_id": parcel.stop_desk_id,
        "has_exchange": parcel.has_exchange,
        "product_to_collect": parcel.product_to_collect,
    }


async def create_shipment(carrier: "YalidineClient", parcel: ParcelRequest) -> ShipmentResult:
    validate_phone_number(parcel.customer_phone)
    result = await carrier.create_parcels([format_parcel(parcel)])
    if not isinstance(result, Mapping):
        raise CarrierResponseError()

    entry = result.get(parcel.order_id)
    if not isinstance(entry, Mapping) or not entry.get("success"):
        message = entry.get("message") if isinstance(entry, Mapping) else None
        logger.error("shipment_rejected", extra={"order_ref": parcel.order_id, "carrier_message": message})
        raise CarrierRejected(f"Failed to create shipment: {message or 'Unknown error'}", details=entry)
    if not entry.get("tracking"):
        raise CarrierResponseError("Shipping partner returned no tracking number")

    logger.info("shipment_created", extra={"order_ref": parcel.order_id, "tracking": entry["tracking"]})
    return ShipmentResult(
        tracking=str(entry["tracking"]),
        order_id=str(entry.get("order_id") or parcel.order_id),
        label=entry.get("label"),
        import_id=entry.get("import_id"),
    )


async def get_shipment(carrier: "YalidineClient", tracking: str) -> Any:
    return await carrier.get_parcel(tracking)


def _event_location(event: Mapping[str, Any]) -> str | None:
    if event.get("center_name"):
        return str(event["center_name"])
    parts = [event.get("commune_name"), event.get("wilaya_name")]
    return " / ".join(str(part) for part in parts if part) or None


async def get_tracking_history(carrier: "YalidineClient", tracking: str) -> list[TrackingEvent]:
    """Tracking events in exactly the order the carrier returned them."""

    data = await carrier.get_parcel_history(tracking)
    events = data.get("data") if isinstance(data, Mapping) else data
    if not isinstance(events, list):
        raise CarrierResponseError("Unexpected tracking history from shipping partner")
    return [
        TrackingEvent(
            date=event.get("date_status"),
            status=event.get("status"),
            reason=event.get("reason") or None,
            location=_event_location(event),
        )
        for event in events
        if isinstance(event, Mapping)
    ]


async def update_shipment(carrier: "YalidineClient", tracking: str, data: Mapping[str, Any]) -> Any:
    logger.info("shipment_update_requested", extra={"tracking": tracking, "fields": sorted(data)})
    return await carrier.update_parcel(tracking, data)


async def delete_shipment(carrier: "YalidineClient", tracking: str) -> Any:
    logger.info("shipment_delete_requested", extra={"tracking": tracking})
    return await carrier.delete_parcel(tracking)


async def list_shipments(carrier: "YalidineClient", filters: ShipmentFilters | None = None) -> Any:
    return await carrier.list_parcels(filters.to_params() if filters else None)


def _carrier_wilaya_name(code: str | None, fallback: str) -> str:
    if code and code.isdigit():
        return wilayas.get_name(int(code)) or fallback
    return fallback


def build_order_parcel(order: Order) -> ParcelRequest:
    """Describe a stored order as a parcel leaving the shop's wilaya."""

    city = order.city
    desk = order.delivery_desk if order.delivery_type is DeliveryType.PICKUP else None
    measure = aggregate_parcel(item.product for item in order.items)
    product_list = ", ".join(
        f"{item.quantity}x {item.product.name}" + (f" ({item.size})" if item.size else "") for item in order.items
    )
    stop_desk_id = int(desk.external_id) if desk and desk.external_id and desk.external_id.isdigit() else None
    return ParcelRequest(
        order_id=order.order_number or str(order.id),
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_address=order.delivery_address or (desk.address if desk else None) or city.name,
        from_wilaya_name=wilayas.get_name(settings.origin_wilaya_id) or "",
        to_wilaya_name=_carrier_wilaya_name(city.code, city.name),
        to_commune_name=desk.name if desk else city.name,
        product_list=product_list,
        price=float(order.total),
        weight=measure.weight,
        length=measure.length,
        width=measure.width,
        height=measure.height,
        is_stop_desk=order.delivery_type is DeliveryType.PICKUP,
        stop_desk_id=stop_desk_id,
        declared_value=float(order.total),
    )


async def ship_order(session: AsyncSession, carrier: "YalidineClient", order: Order) -> ShipmentResult:
    """Create the carrier parcel for a confirmed order and store its tracking number."""

    result = await create_shipment(carrier, build_order_parcel(order))
    order.tracking_number = result.tracking
    order.yalidine_shipment_id = str(result.import_id) if result.import_id is not None else None
    append_note(order, settings.carrier_name.upper(), f"Shipment created: {result.tracking}")
    await session.commit()
    return result
