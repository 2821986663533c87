#!/usr/bin/env python
from __future__ import annotations

import asyncio
from decimal import Decimal

from sqlalchemy import select

from storefront.core.config import settings
from storefront.db.base import Base, Category, City, Product, ProductSize
from storefront.db.session import engine, SessionLocal
from storefront.domain.geo import wilayas


async def seed_catalog() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as session:
        existing = await session.execute(select(City.code))
        known_codes = set(existing.scalars())
        cities = [
            City(
                name=entry.name,
                name_ar=entry.name_ar,
                code=entry.code,
                delivery_fee=Decimal(settings.default_home_delivery_fee),
            )
            for entry in wilayas.list_all()
            if entry.code not in known_codes
        ]
        session.add_all(cities)

        category = (await session.execute(select(Category).where(Category.slug == "loud-styles"))).scalars().first()
        if category is None:
            category = Category(slug="loud-styles", name="Loud Styles", name_ar="لاود ستايلز")
            session.add(category)
            session.add(
                Product(
                    reference="LS-0001",
                    name="Robe Kabyle",
                    name_ar="فستان قبائلي",
                    category=category,
                    price=Decimal("6500"),
                    old_price=Decimal("7500"),
                    stock=0,
                    is_on_sale=True,
                    weight_kg=Decimal("0.8"),
                    sizes=[ProductSize(size=size, stock=10) for size in ("S", "M", "L", "XL")],
                )
            )
        await session.commit()
        print(f"Seeded {len(cities)} cities")


if __name__ == "__main__":
    asyncio.run(seed_catalog())
