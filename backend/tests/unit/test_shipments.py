import json

import httpx
import pytest

from storefront.core.errors import CarrierRejected, CarrierResponseError, InvalidPhoneNumber
from storefront.domain.shipping.shipments import (
    ParcelRequest,
    ShipmentFilters,
    create_shipment,
    delete_shipment,
    format_parcel,
    get_tracking_history,
    is_valid_phone_number,
    list_shipments,
    update_shipment,
    validate_phone_number,
)


def make_parcel(**overrides) -> ParcelRequest:
    data = {
        "order_id": "ORD-000042",
        "customer_name": "Amina Ait Saadi",
        "customer_phone": "0551234567",
        "customer_address": "12 Rue Didouche Mourad",
        "from_wilaya_name": "Batna",
        "to_wilaya_name": "Algiers",
        "to_commune_name": "Alger Centre",
        "product_list": "2x Robe Kabyle (M)",
        "price": 5499.6,
        "weight": 1.4,
        "length": 30.4,
        "width": 20.4,
        "height": 10,
    }
    data.update(overrides)
    return ParcelRequest(**data)


@pytest.mark.parametrize("phone", ["0551234567", "0661234567", "0771234567", "021123456", "041234567"])
def test_valid_phone_numbers(phone: str) -> None:
    assert is_valid_phone_number(phone)
    assert validate_phone_number(phone) == phone


@pytest.mark.parametrize("phone", ["123456", "0851234567", "05512345678", "0211234567", "+213551234567", ""])
def test_invalid_phone_numbers(phone: str) -> None:
    assert not is_valid_phone_number(phone)
    with pytest.raises(InvalidPhoneNumber):
        validate_phone_number(phone)


def test_parcel_request_accepts_camel_case() -> None:
    parcel = ParcelRequest.model_validate(
        {
            "orderId": "ORD-000001",
            "customerName": "Yacine",
            "customerPhone": "0661234567",
            "customerAddress": "Cité 500 logements",
            "fromWilayaName": "Batna",
            "toWilayaName": "Oran",
            "toCommuneName": "Oran",
            "productList": "1x T-shirt",
            "price": 1000,
            "weight": 1,
            "length": 10,
            "width": 10,
            "height": 10,
            "isStopDesk": True,
            "stopDeskId": 311501,
        }
    )
    assert parcel.is_stop_desk is True
    assert parcel.stop_desk_id == 311501


def test_format_parcel_splits_name_and_rounds() -> None:
    payload = format_parcel(make_parcel(is_stop_desk=True, stop_desk_id=161501, declared_value=5499.6))
    assert payload["firstname"] == "Amina"
    assert payload["familyname"] == "Ait Saadi"
    assert payload["price"] == 5500
    assert payload["declared_value"] == 5500
    assert (payload["length"], payload["width"], payload["height"], payload["weight"]) == (30, 20, 10, 1)
    assert payload["is_stopdesk"] is True
    assert payload["stopdesk_id"] == 161501
    assert payload["contact_phone"] == "0551234567"


def test_format_parcel_single_word_name() -> None:
    payload = format_parcel(make_parcel(customer_name="Yacine"))
    assert payload["firstname"] == "Yacine"
    assert payload["familyname"] == ""


async def test_create_shipment_returns_tracking(accepting_carrier) -> None:
    result = await create_shipment(accepting_carrier.client, make_parcel())

    assert result.tracking == "yal-000042"
    assert result.import_id == 777
    sent = json.loads(accepting_carrier.requests[0].content)
    assert isinstance(sent, list) and sent[0]["order_id"] == "ORD-000042"
    await accepting_carrier.client.aclose()


async def test_create_shipment_checks_phone_before_calling(accepting_carrier) -> None:
    with pytest.raises(InvalidPhoneNumber):
        await create_shipment(accepting_carrier.client, make_parcel(customer_phone="123456"))
    assert accepting_carrier.requests == []
    await accepting_carrier.client.aclose()


async def test_create_shipment_reports_carrier_refusal(make_carrier) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ORD-000042": {"success": False, "message": "Commune inconnue"}})

    carrier = make_carrier(handler)
    with pytest.raises(CarrierRejected) as exc_info:
        await create_shipment(carrier, make_parcel())
    assert "Commune inconnue" in exc_info.value.message
    await carrier.aclose()


async def test_tracking_history_keeps_carrier_order(make_carrier) -> None:
    events = [
        {"date_status": "2026-10-03 16:10:00", "status": "Livré", "reason": "", "center_name": None,
         "commune_name": "Alger Centre", "wilaya_name": "Alger"},
        {"date_status": "2026-10-01 09:00:00", "status": "En préparation", "reason": None,
         "center_name": "Batna Center", "commune_name": "Batna", "wilaya_name": "Batna"},
        {"date_status": "2026-10-02 11:30:00", "status": "Expédié", "reason": "Retard météo",
         "center_name": None, "commune_name": None, "wilaya_name": "Sétif"},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["tracking"] == "yal-000042"
        return httpx.Response(200, json={"has_more": False, "total_data": 3, "data": events})

    carrier = make_carrier(handler)
    history = await get_tracking_history(carrier, "yal-000042")

    assert [event.date for event in history] == [event["date_status"] for event in events]
    assert history[0].location == "Alger Centre / Alger"
    assert history[0].reason is None
    assert history[1].location == "Batna Center"
    assert history[2].reason == "Retard météo"
    assert history[2].location == "Sétif"
    await carrier.aclose()


async def test_tracking_history_rejects_unknown_shape(make_carrier) -> None:
    carrier = make_carrier(lambda request: httpx.Response(200, json={"data": "nope"}))
    with pytest.raises(CarrierResponseError):
        await get_tracking_history(carrier, "yal-000042")
    await carrier.aclose()


async def test_list_shipments_forwards_filters(make_carrier) -> None:
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"data": [], "has_more": False})

    carrier = make_carrier(handler)
    filters = ShipmentFilters.model_validate({"toWilayaId": 16, "isStopdesk": True, "page": 2})
    await list_shipments(carrier, filters)

    assert seen == {"to_wilaya_id": "16", "is_stopdesk": "true", "page": "2"}
    await carrier.aclose()


async def test_update_and_delete_shipment_hit_the_parcel(make_carrier) -> None:
    calls: list[tuple[str, str, bytes]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path, request.content))
        return httpx.Response(200, json={"tracking": "yal-000042"})

    carrier = make_carrier(handler)
    await update_shipment(carrier, "yal-000042", {"customer_phone": "0661234567"})
    await delete_shipment(carrier, "yal-000042")

    assert [(method, path) for method, path, _ in calls] == [
        ("PATCH", "/v1/parcels/yal-000042"),
        ("DELETE", "/v1/parcels/yal-000042"),
    ]
    assert json.loads(calls[0][2]) == {"customer_phone": "0661234567"}
    await carrier.aclose()
