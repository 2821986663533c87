from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from ...core.camel import CamelModel
from ...db.models.orders import CallCenterStatus, DeliveryStatus, DeliveryType
from ...domain.shipping.shipments import ShipmentResult


class WilayaOut(CamelModel):
    id: int
    name: str
    name_ar: str
    code: str


class CityOut(CamelModel):
    id: int
    name: str
    name_ar: str | None = None
    code: str
    delivery_fee: float


class DeliveryDeskOut(CamelModel):
    id: int
    city_id: int
    name: str
    name_ar: str | None = None
    address: str
    phone: str | None = None
    external_id: str | None = None
    is_active: bool


class DeliveryDeskWithCityOut(DeliveryDeskOut):
    city: CityOut


class ProductSummaryOut(CamelModel):
    id: int
    reference: str | None = None
    name: str
    name_ar: str | None = None
    price: float


class OrderItemOut(CamelModel):
    id: int
    product_id: int
    size_id: int | None = None
    quantity: int
    price: float
    size: str | None = None
    product: ProductSummaryOut


class OrderOut(CamelModel):
    id: int
    order_number: str | None
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    delivery_type: DeliveryType
    delivery_address: str | None = None
    city_id: int
    delivery_desk_id: int | None = None
    delivery_fee: float
    subtotal: float
    total: float
    notes: str | None = None
    call_center_status: CallCenterStatus
    delivery_status: DeliveryStatus
    tracking_number: str | None = None
    yalidine_shipment_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    city: CityOut
    delivery_desk: DeliveryDeskOut | None = None
    items: list[OrderItemOut] = Field(default_factory=list)


class OrderCreatedResponse(CamelModel):
    message: str
    order: OrderOut


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListResponse(CamelModel):
    orders: list[OrderOut]
    pagination: Pagination


class OrderStatusResponse(OrderOut):
    shipment_error: str | None = None


class OrderConfirmResponse(CamelModel):
    message: str
    order: OrderOut
    shipment_error: str | None = None


class ShipmentRetryResponse(CamelModel):
    message: str
    order: OrderOut
    shipment: ShipmentResult


class CalculateFeesRequest(CamelModel):
    from_wilaya_id: int = Field(gt=0)
    to_wilaya_id: int = Field(gt=0)
    weight: float | None = Field(default=None, gt=0)
    length: float | None = Field(default=None, gt=0)
    width: float | None = Field(default=None, gt=0)
    height: float | None = Field(default=None, gt=0)
    declared_value: float | None = Field(default=None, gt=0)
    commune_name: str | None = None


class CreateShipmentResponse(ShipmentResult):
    success: bool = True


class CarrierStatusOut(CamelModel):
    configured: bool
    message: str
    rate_limits: dict[str, Any] | None = None
