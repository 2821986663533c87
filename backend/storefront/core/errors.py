"""Domain error taxonomy.

Every error is an ``HTTPException`` so domain code can raise it directly and the
API layer renders it as ``{"error": ...}`` without a translation table.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class StorefrontError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, details: Any = None) -> None:
        super().__init__(status_code=self.status_code, detail=message or self.default_message)
        self.details = details

    @property
    def message(self) -> str:
        return str(self.detail)


# Input and geography


class UnsupportedWilaya(StorefrontError):
    default_message = "Unsupported wilaya"

    def __init__(self, wilaya_id: int) -> None:
        super().__init__(f"Unsupported wilaya: {wilaya_id}. Please contact support.")
        self.wilaya_id = wilaya_id


class CityNotFound(StorefrontError):
    default_message = "City not found"

    def __init__(self, wilaya_id: int, wilaya_name: str) -> None:
        super().__init__(
            f"Delivery is not configured for {wilaya_name} (wilaya {wilaya_id}). Please contact support."
        )
        self.wilaya_id = wilaya_id


# Catalog and stock


class ProductNotFound(StorefrontError):
    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class SizeNotFound(StorefrontError):
    def __init__(self, product_name: str) -> None:
        super().__init__(f"Size not found for product: {product_name}")


class InsufficientStock(StorefrontError):
    def __init__(self, product_name: str) -> None:
        super().__init__(f"Insufficient stock for product: {product_name}")
        self.product_name = product_name


# Orders


class OrderNotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Order not found"


class OrderItemNotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Order item not found"


class InvalidStatusTransition(StorefrontError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, field: str, current: str, target: str) -> None:
        super().__init__(f"Cannot change {field} from {current} to {target}")


class OrderLocked(StorefrontError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Order can no longer be modified"


class OrderCreationFailed(StorefrontError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to create order"


# Carrier


class InvalidPhoneNumber(StorefrontError):
    def __init__(self, phone: str) -> None:
        super().__init__(f"Invalid phone number format: {phone}")


class CarrierNotConfigured(StorefrontError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Yalidine shipping not configured"


class CarrierUnavailable(StorefrontError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Shipping partner is unreachable, please retry later"


class CarrierRejected(StorefrontError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Shipping partner rejected the request"


class CarrierResponseError(StorefrontError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Unexpected response from shipping partner"


# Access


class NotAuthenticated(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Access token required"


class Forbidden(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"
