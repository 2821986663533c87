from __future__ import annotations

from .models.base import Base  # noqa: F401  re-export for Alembic
from .models.catalog import Category, Product, ProductSize  # noqa: F401
from .models.geo import City, DeliveryDesk  # noqa: F401
from .models.orders import Order, OrderItem  # noqa: F401
