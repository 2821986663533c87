from __future__ import annotations

from typing import AsyncGenerator, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import Forbidden, NotAuthenticated
from ..core.security import OperatorRole, role_from_claims, verify_access_token
from ..db.session import get_db
from ..integrations.yalidine import YalidineClient

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db():
        yield session


def get_carrier_client(request: Request) -> YalidineClient:
    client = getattr(request.app.state, "carrier", None)
    if client is None:
        client = YalidineClient.from_settings()
        request.app.state.carrier = client
    return client


async def get_operator_role(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> OperatorRole:
    if credentials is None:
        raise NotAuthenticated()
    claims = verify_access_token(credentials.credentials)
    if claims is None:
        raise NotAuthenticated("Invalid or expired token")
    role = role_from_claims(claims)
    if role is None:
        raise Forbidden()
    return role


def require_roles(*roles: OperatorRole) -> Callable[..., object]:
    allowed = frozenset(roles)

    async def dependency(role: OperatorRole = Depends(get_operator_role)) -> OperatorRole:
        if role not in allowed:
            raise Forbidden()
        return role

    return dependency


require_admin = require_roles(OperatorRole.ADMIN)
require_confirmation = require_roles(OperatorRole.ADMIN, OperatorRole.CONFIRMATRICE)
require_delivery = require_roles(OperatorRole.ADMIN, OperatorRole.AGENT_LIVRAISON)
require_operator = require_roles(OperatorRole.ADMIN, OperatorRole.CONFIRMATRICE, OperatorRole.AGENT_LIVRAISON)
