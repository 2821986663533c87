from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum as PyEnum
from typing import Any

from jose import JWTError, jwt

from .config import settings

ALGORITHM = "HS256"


class OperatorRole(str, PyEnum):
    ADMIN = "ADMIN"
    CONFIRMATRICE = "CONFIRMATRICE"
    AGENT_LIVRAISON = "AGENT_LIVRAISON"


def create_access_token(subject: str | Any, role: OperatorRole, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {"sub": str(subject), "role": role.value, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def verify_access_token(token: str) -> dict[str, Any] | None:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def role_from_claims(claims: dict[str, Any]) -> OperatorRole | None:
    try:
        return OperatorRole(claims.get("role"))
    except ValueError:
        return None
