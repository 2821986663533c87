from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.errors import InsufficientStock
from ...core.logging import get_logger
from ...db.models.catalog import Product, ProductSize

logger = get_logger(__name__)


async def decrement_stock(
    session: AsyncSession,
    *,
    product_id: int,
    size_id: int | None,
    quantity: int,
    product_name: str,
) -> None:
    """Take ``quantity`` units from the size row, or from the product when there is no size.

    The guard lives in the UPDATE itself so two checkouts racing for the last
    unit cannot both succeed. Nothing is committed here.
    """

    if size_id is not None:
        stmt = (
            update(ProductSize)
            .where(ProductSize.id == size_id, ProductSize.stock >= quantity)
            .values(stock=ProductSize.stock - quantity)
        )
    else:
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
        )
    result = await session.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount != 1:
        logger.info(
            "stock_decrement_refused",
            extra={"product_id": product_id, "size_id": size_id, "quantity": quantity},
        )
        raise InsufficientStock(product_name)


async def restock(session: AsyncSession, *, product_id: int, size_id: int | None, quantity: int) -> None:
    if quantity <= 0:
        return
    if size_id is not None:
        stmt = update(ProductSize).where(ProductSize.id == size_id).values(stock=ProductSize.stock + quantity)
    else:
        stmt = update(Product).where(Product.id == product_id).values(stock=Product.stock + quantity)
    await session.execute(stmt.execution_options(synchronize_session=False))
    logger.info("stock_restored", extra={"product_id": product_id, "size_id": size_id, "quantity": quantity})
