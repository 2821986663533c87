from __future__ import annotations

from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio

from storefront.api.deps import get_carrier_client, get_session
from storefront.core.security import OperatorRole, create_access_token
from storefront.integrations.yalidine import YalidineClient
from storefront.main import app


@pytest.fixture
def carrier_holder(make_carrier) -> dict[str, YalidineClient]:
    """Mutable slot so a test can swap the carrier the app talks to."""

    return {"client": make_carrier(lambda request: httpx.Response(503), api_id=None, api_token=None)}


@pytest_asyncio.fixture
async def client(session_factory, carrier_holder) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_carrier_client] = lambda: carrier_holder["client"]
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    await carrier_holder["client"].aclose()


@pytest.fixture
def auth_headers() -> Callable[[OperatorRole], dict[str, str]]:
    def factory(role: OperatorRole) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token('operator-1', role)}"}

    return factory
