from fastapi import APIRouter

from . import admin, health, orders, shipping, wilayas

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])  # type: ignore[arg-type]
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])  # type: ignore[arg-type]
api_router.include_router(wilayas.router, prefix="/wilayas", tags=["wilayas"])  # type: ignore[arg-type]
api_router.include_router(shipping.router, prefix="/shipping", tags=["shipping"])  # type: ignore[arg-type]
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])  # type: ignore[arg-type]
