from datetime import timedelta

from storefront.core.security import OperatorRole, create_access_token, role_from_claims, verify_access_token


def test_token_carries_role() -> None:
    claims = verify_access_token(create_access_token(7, OperatorRole.CONFIRMATRICE))
    assert claims is not None
    assert claims["sub"] == "7"
    assert role_from_claims(claims) is OperatorRole.CONFIRMATRICE


def test_expired_token_is_rejected() -> None:
    token = create_access_token(7, OperatorRole.ADMIN, expires_delta=timedelta(seconds=-5))
    assert verify_access_token(token) is None


def test_unknown_role() -> None:
    assert role_from_claims({"role": "CUSTOMER"}) is None
    assert role_from_claims({}) is None
