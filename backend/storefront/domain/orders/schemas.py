from __future__ import annotations

from pydantic import EmailStr, Field, field_validator, model_validator

from ...core.camel import CamelModel
from ...db.models.orders import CallCenterStatus, DeliveryStatus, DeliveryType


class OrderLineRequest(CamelModel):
    product_id: int
    quantity: int = Field(ge=1)
    size_id: int | None = None


class OrderCreateRequest(CamelModel):
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str = Field(min_length=10, max_length=32)
    customer_email: EmailStr | None = None
    delivery_type: DeliveryType
    delivery_address: str | None = Field(default=None, max_length=512)
    wilaya_id: int = Field(ge=1)
    delivery_desk_id: str | None = Field(default=None, max_length=64)
    delivery_desk_name: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    items: list[OrderLineRequest] = Field(min_length=1)

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("delivery_desk_id", mode="before")
    @classmethod
    def _desk_id_as_text(cls, value: object) -> object:
        # Carrier center ids arrive as numbers from the checkout form.
        return str(value) if isinstance(value, int) else value

    @model_validator(mode="after")
    def _home_delivery_needs_address(self) -> "OrderCreateRequest":
        if self.delivery_type is DeliveryType.HOME_DELIVERY and not (self.delivery_address or "").strip():
            raise ValueError("deliveryAddress is required for home delivery")
        return self


class OrderStatusUpdateRequest(CamelModel):
    call_center_status: CallCenterStatus | None = None
    delivery_status: DeliveryStatus | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _something_to_change(self) -> "OrderStatusUpdateRequest":
        if self.call_center_status is None and self.delivery_status is None:
            raise ValueError("callCenterStatus or deliveryStatus is required")
        return self


class OrderNoteRequest(CamelModel):
    notes: str | None = None


class OrderCancelRequest(CamelModel):
    reason: str | None = None


class OrderItemAddRequest(OrderLineRequest):
    pass


class OrderItemQuantityRequest(CamelModel):
    quantity: int = Field(ge=1)
