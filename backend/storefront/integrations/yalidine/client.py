"""Async client for the Yalidine parcel API.

Reads are retried on transport failures and 5xx responses with a linear
backoff. Writes (parcel creation, updates, deletions) are sent once: a
timed-out POST may still have created the parcel, so retrying is left to the
operator.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Mapping

import httpx

from ...core.config import Settings, settings as default_settings
from ...core.errors import CarrierNotConfigured, CarrierRejected, CarrierResponseError, CarrierUnavailable
from ...core.logging import get_logger

logger = get_logger(__name__)

QUOTA_HEADERS = {
    "second_quota_left": "second-quota-left",
    "minute_quota_left": "minute-quota-left",
    "hour_quota_left": "hour-quota-left",
    "day_quota_left": "day-quota-left",
}


def _quotas(response: httpx.Response) -> dict[str, str | None]:
    return {key: response.headers.get(header) for key, header in QUOTA_HEADERS.items()}


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = error.get("message")
        else:
            message = error or body.get("message")
        return str(message or response.reason_phrase), body
    return response.reason_phrase, body


class YalidineClient:
    def __init__(
        self,
        api_id: str | None,
        api_token: str | None,
        *,
        base_url: str = "https://api.yalidine.app/v1",
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        cache_ttl: float = 300,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_id = api_id
        self.api_token = api_token
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self.cache_ttl = cache_ttl
        self._cache: dict[str, tuple[float, Any]] = {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "X-API-ID": api_id or "",
                "X-API-TOKEN": api_token or "",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, config: Settings | None = None, **kwargs: Any) -> "YalidineClient":
        config = config or default_settings
        return cls(
            config.yalidine_api_id,
            config.yalidine_api_token,
            base_url=config.yalidine_base_url,
            timeout=config.yalidine_timeout_seconds,
            max_retries=config.yalidine_max_retries,
            retry_backoff=config.yalidine_retry_backoff_seconds,
            cache_ttl=config.yalidine_cache_ttl_seconds,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_id and self.api_token)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "YalidineClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        retry: bool = False,
    ) -> httpx.Response:
        if not self.configured:
            raise CarrierNotConfigured()

        attempts = self.max_retries if retry else 1
        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(method, path, params=params, json=json)
            except httpx.TransportError as exc:
                logger.warning(
                    "carrier_request_failed",
                    extra={"method": method, "path": path, "attempt": attempt, "error": repr(exc)},
                )
                if attempt < attempts:
                    await asyncio.sleep(self.retry_backoff * attempt)
                    continue
                raise CarrierUnavailable() from exc

            logger.debug(
                "carrier_response",
                extra={"method": method, "path": path, "status_code": response.status_code, **_quotas(response)},
            )
            if response.status_code >= 500:
                logger.warning(
                    "carrier_server_error",
                    extra={"method": method, "path": path, "attempt": attempt, "status_code": response.status_code},
                )
                if attempt < attempts:
                    await asyncio.sleep(self.retry_backoff * attempt)
                    continue
                raise CarrierUnavailable()
            if response.status_code >= 400:
                message, body = _error_message(response)
                logger.error(
                    "carrier_request_rejected",
                    extra={"method": method, "path": path, "status_code": response.status_code, "body": body},
                )
                raise CarrierRejected(f"Shipping partner rejected the request: {message}", details=body)
            return response

        raise CarrierUnavailable()  # pragma: no cover

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise CarrierResponseError() from exc

    async def _get(self, path: str, params: Mapping[str, Any] | None = None, *, cache: bool = False) -> Any:
        key = f"{path}?{sorted((params or {}).items())}"
        if cache:
            hit = self._cache.get(key)
            if hit is not None and time.monotonic() - hit[0] < self.cache_ttl:
                return hit[1]
        data = self._decode(await self._request("GET", path, params=params, retry=True))
        if cache and self.cache_ttl > 0:
            self._cache[key] = (time.monotonic(), data)
        return data

    async def get_status(self) -> dict[str, Any]:
        response = await self._request("GET", "/wilayas/", retry=True)
        return {"status": "connected", "rate_limits": _quotas(response)}

    async def get_wilayas(self) -> Any:
        return await self._get("/wilayas/", cache=True)

    async def get_communes(self, wilaya_id: int | None = None) -> Any:
        params = {"wilaya_id": wilaya_id} if wilaya_id else None
        return await self._get("/communes/", params, cache=True)

    async def get_centers(self, wilaya_id: int | None = None) -> Any:
        params = {"wilaya_id": wilaya_id} if wilaya_id else None
        return await self._get("/centers/", params, cache=True)

    async def get_fees(self, from_wilaya_id: int, to_wilaya_id: int) -> Any:
        params = {"from_wilaya_id": from_wilaya_id, "to_wilaya_id": to_wilaya_id}
        return await self._get("/fees/", params, cache=True)

    async def create_parcels(self, parcels: list[dict[str, Any]]) -> Any:
        logger.info("carrier_create_parcels", extra={"order_ids": [parcel.get("order_id") for parcel in parcels]})
        return self._decode(await self._request("POST", "/parcels/", json=parcels))

    async def get_parcel(self, tracking: str) -> Any:
        return await self._get(f"/parcels/{tracking}")

    async def get_parcel_history(self, tracking: str) -> Any:
        return await self._get("/histories/", {"tracking": tracking})

    async def update_parcel(self, tracking: str, data: Mapping[str, Any]) -> Any:
        return self._decode(await self._request("PATCH", f"/parcels/{tracking}", json=dict(data)))

    async def delete_parcel(self, tracking: str) -> Any:
        return self._decode(await self._request("DELETE", f"/parcels/{tracking}"))

    async def list_parcels(self, filters: Mapping[str, Any] | None = None) -> Any:
        params = {key: value for key, value in (filters or {}).items() if value is not None}
        return await self._get("/parcels/", params)
