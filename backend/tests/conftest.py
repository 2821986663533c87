"""Shared fixtures: in-memory SQLite database, seeded catalog, fake carrier."""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.db.base import Base, City, DeliveryDesk, Product, ProductSize
from storefront.integrations.yalidine import YalidineClient

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@dataclass
class Catalog:
    algiers: City
    batna: City
    tshirt: Product
    dress: Product
    dress_m: ProductSize
    dress_l: ProductSize
    retired: Product


@pytest_asyncio.fixture
async def catalog(session: AsyncSession) -> Catalog:
    algiers = City(name="Algiers", name_ar="الجزائر", code="16", delivery_fee=Decimal("500"))
    batna = City(name="Batna", name_ar="باتنة", code="05", delivery_fee=Decimal("400"))
    tshirt = Product(reference="TS-01", name="T-shirt Loudim", price=Decimal("1000"), stock=5)
    dress = Product(
        reference="DR-01",
        name="Robe Kabyle",
        price=Decimal("2500"),
        stock=0,
        weight_kg=Decimal("2"),
        length_cm=Decimal("30"),
    )
    dress_m = ProductSize(size="M", stock=3)
    dress_l = ProductSize(size="L", stock=1)
    dress.sizes = [dress_m, dress_l]
    retired = Product(reference="OLD-01", name="Old Jacket", price=Decimal("3000"), stock=10, is_active=False)
    session.add_all([algiers, batna, tshirt, dress, retired])
    await session.commit()
    return Catalog(algiers, batna, tshirt, dress, dress_m, dress_l, retired)


@pytest_asyncio.fixture
async def algiers_desk(session: AsyncSession, catalog: Catalog) -> DeliveryDesk:
    desk = DeliveryDesk(
        city_id=catalog.algiers.id,
        name="Bab Ezzouar",
        address="Yalidine Center - Algiers",
        external_id="161501",
    )
    session.add(desk)
    await session.commit()
    return desk


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def make_carrier() -> Callable[..., YalidineClient]:
    def factory(handler: Handler, **kwargs) -> YalidineClient:
        kwargs.setdefault("retry_backoff", 0)
        return YalidineClient(
            kwargs.pop("api_id", "test-id"),
            kwargs.pop("api_token", "test-token"),
            base_url="https://carrier.test/v1",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return factory


@dataclass
class RecordingCarrier:
    client: YalidineClient
    requests: list[httpx.Request]


@pytest.fixture
def accepting_carrier(make_carrier) -> RecordingCarrier:
    """Carrier that accepts every submitted parcel and records each request."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST" and request.url.path.endswith("/parcels/"):
            parcels = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    parcel["order_id"]: {
                        "success": True,
                        "order_id": parcel["order_id"],
                        "tracking": f"yal-{parcel['order_id'][-6:]}",
                        "import_id": 777,
                        "label": f"https://carrier.test/label/{parcel['order_id']}",
                        "message": "",
                    }
                    for parcel in parcels
                },
            )
        if request.method == "DELETE":
            return httpx.Response(200, json=[{"tracking": request.url.path.rsplit("/", 1)[-1], "deleted": True}])
        return httpx.Response(404, json={"error": {"message": "not found"}})

    return RecordingCarrier(make_carrier(handler), requests)
