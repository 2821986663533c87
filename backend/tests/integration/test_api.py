import httpx
import pytest

from storefront.core.security import OperatorRole

API = "/api/v1"


def order_body(catalog, **overrides) -> dict:
    body = {
        "customerName": "Amina Ait Saadi",
        "customerPhone": "0551234567",
        "deliveryType": "PICKUP",
        "wilayaId": 16,
        "items": [{"productId": catalog.tshirt.id, "quantity": 2}],
    }
    body.update(overrides)
    return body


async def test_create_order(client, catalog) -> None:
    response = await client.post(f"{API}/orders", json=order_body(catalog))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Order created successfully"
    order = body["order"]
    assert order["orderNumber"].startswith("ORD-")
    assert order["subtotal"] == 2000
    assert order["deliveryFee"] == 0
    assert order["total"] == 2000
    assert order["callCenterStatus"] == "NEW"
    assert order["city"]["name"] == "Algiers"
    assert order["deliveryDesk"]["name"] == "Yalidine Algiers"
    assert order["items"][0]["product"]["name"] == "T-shirt Loudim"

    fetched = await client.get(f"{API}/orders/{order['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["orderNumber"] == order["orderNumber"]


async def test_home_delivery_requires_address(client, catalog) -> None:
    response = await client.post(f"{API}/orders", json=order_body(catalog, deliveryType="HOME_DELIVERY"))
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid input data"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"customerPhone": "0551"}, "customerPhone"),
        ({"customerEmail": "not-an-email"}, "customerEmail"),
        ({"items": []}, "items"),
        ({"deliveryType": "DRONE"}, "deliveryType"),
        ({"wilayaId": 0}, "wilayaId"),
    ],
)
async def test_validation_errors_name_the_field(client, catalog, overrides, field) -> None:
    response = await client.post(f"{API}/orders", json=order_body(catalog, **overrides))
    assert response.status_code == 400
    assert any(detail["field"].startswith(field) for detail in response.json()["details"])


async def test_business_errors_render_as_error_field(client, catalog) -> None:
    response = await client.post(
        f"{API}/orders", json=order_body(catalog, items=[{"productId": catalog.tshirt.id, "quantity": 50}])
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Insufficient stock for product: T-shirt Loudim"}

    missing = await client.get(f"{API}/orders/9999")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Order not found"}


async def test_admin_routes_need_a_role(client, catalog, auth_headers) -> None:
    assert (await client.get(f"{API}/admin/orders")).status_code == 401
    bad_token = await client.get(f"{API}/admin/orders", headers={"Authorization": "Bearer nope"})
    assert bad_token.status_code == 401

    agent = auth_headers(OperatorRole.AGENT_LIVRAISON)
    assert (await client.get(f"{API}/admin/orders", headers=agent)).status_code == 200
    assert (await client.get(f"{API}/admin/orders/export", headers=agent)).status_code == 403


async def test_delivery_desks_listing(client, algiers_desk, auth_headers) -> None:
    response = await client.get(f"{API}/admin/delivery-desks", headers=auth_headers(OperatorRole.CONFIRMATRICE))

    assert response.status_code == 200
    [desk] = response.json()
    assert desk["name"] == "Bab Ezzouar"
    assert desk["externalId"] == "161501"
    assert desk["city"]["name"] == "Algiers"


async def test_operator_flow(client, catalog, auth_headers) -> None:
    created = (await client.post(f"{API}/orders", json=order_body(catalog))).json()["order"]
    confirmatrice = auth_headers(OperatorRole.CONFIRMATRICE)
    agent = auth_headers(OperatorRole.AGENT_LIVRAISON)

    listing = await client.get(f"{API}/admin/orders", params={"status": "NEW"}, headers=confirmatrice)
    assert listing.json()["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}

    confirmed = await client.post(
        f"{API}/admin/orders/{created['id']}/confirm", json={"notes": "OK"}, headers=confirmatrice
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["order"]["callCenterStatus"] == "CONFIRMED"
    assert confirmed.json()["shipmentError"] == "Yalidine shipping not configured"

    # Call-center staff cannot move parcels.
    forbidden = await client.patch(
        f"{API}/admin/orders/{created['id']}/status", json={"deliveryStatus": "READY"}, headers=confirmatrice
    )
    assert forbidden.status_code == 403

    ready = await client.post(f"{API}/admin/orders/{created['id']}/ready", headers=agent)
    assert ready.json()["deliveryStatus"] == "READY"

    conflict = await client.post(f"{API}/admin/orders/{created['id']}/cancel", headers=confirmatrice)
    assert conflict.status_code == 409
    assert "error" in conflict.json()


async def test_status_patch_to_confirmed_creates_shipment(
    client, catalog, algiers_desk, auth_headers, carrier_holder, accepting_carrier
) -> None:
    await carrier_holder["client"].aclose()
    carrier_holder["client"] = accepting_carrier.client
    created = (await client.post(f"{API}/orders", json=order_body(catalog))).json()["order"]

    response = await client.patch(
        f"{API}/admin/orders/{created['id']}/status",
        json={"callCenterStatus": "CONFIRMED"},
        headers=auth_headers(OperatorRole.ADMIN),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["callCenterStatus"] == "CONFIRMED"
    assert body["trackingNumber"] == f"yal-{created['orderNumber'][-6:]}"
    assert body["shipmentError"] is None
    assert [request.method for request in accepting_carrier.requests] == ["POST"]


async def test_status_patch_to_confirmed_reports_missing_carrier(client, catalog, auth_headers) -> None:
    created = (await client.post(f"{API}/orders", json=order_body(catalog))).json()["order"]

    response = await client.patch(
        f"{API}/admin/orders/{created['id']}/status",
        json={"callCenterStatus": "CONFIRMED"},
        headers=auth_headers(OperatorRole.CONFIRMATRICE),
    )

    assert response.status_code == 200
    assert response.json()["trackingNumber"] is None
    assert response.json()["shipmentError"] == "Yalidine shipping not configured"


async def test_item_editing_over_http(client, catalog, auth_headers) -> None:
    created = (await client.post(f"{API}/orders", json=order_body(catalog))).json()["order"]
    headers = auth_headers(OperatorRole.ADMIN)

    added = await client.post(
        f"{API}/admin/orders/{created['id']}/items",
        json={"productId": catalog.dress.id, "sizeId": catalog.dress_m.id, "quantity": 1},
        headers=headers,
    )
    assert added.status_code == 200
    assert added.json()["subtotal"] == 4500

    first_item = created["items"][0]["id"]
    patched = await client.patch(
        f"{API}/admin/orders/{created['id']}/items/{first_item}", json={"quantity": 1}, headers=headers
    )
    assert patched.json()["subtotal"] == 3500

    removed = await client.delete(f"{API}/admin/orders/{created['id']}/items/{first_item}", headers=headers)
    assert [item["size"] for item in removed.json()["items"]] == ["M"]


async def test_wilaya_directory(client) -> None:
    listing = await client.get(f"{API}/wilayas")
    assert len(listing.json()) == 58
    algiers = await client.get(f"{API}/wilayas/16")
    assert algiers.json() == {"id": 16, "name": "Algiers", "nameAr": "الجزائر", "code": "16"}
    assert (await client.get(f"{API}/wilayas/77")).status_code == 400


async def test_shipping_status_when_unconfigured(client) -> None:
    response = await client.get(f"{API}/shipping/status")
    assert response.json() == {"configured": False, "message": "Yalidine API not configured", "rateLimits": None}

    fees = await client.post(f"{API}/shipping/calculate-fees", json={"fromWilayaId": 5, "toWilayaId": 16})
    assert fees.status_code == 503
    assert fees.json() == {"error": "Yalidine shipping not configured"}


async def test_calculate_fees(client, carrier_holder, make_carrier) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["from_wilaya_id"] == "5"
        return httpx.Response(
            200,
            json={
                "from_wilaya_name": "Batna",
                "to_wilaya_name": "Alger",
                "zone": 2,
                "oversize_fee": 50,
                "cod_percentage": 1,
                "insurance_percentage": 1,
                "retour_fee": 200,
                "per_commune": {"1601": {"commune_name": "Alger Centre", "express_home": 650, "express_desk": 400}},
            },
        )

    await carrier_holder["client"].aclose()
    carrier_holder["client"] = make_carrier(handler)
    response = await client.post(
        f"{API}/shipping/calculate-fees",
        json={"fromWilayaId": 5, "toWilayaId": 16, "weight": 2, "length": 50, "width": 40, "height": 30},
    )

    assert response.status_code == 200
    quote = response.json()
    assert quote["billableWeight"] == 12
    assert quote["weightFees"] == 350
    assert quote["deliveryOptions"]["express"] == {"home": 1000, "desk": 750}
    assert quote["deliveryOptions"]["economic"] == {"home": None, "desk": None}


async def test_tracking_endpoint(client, carrier_holder, make_carrier) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"data": [{"date_status": "2026-10-01 09:00:00", "status": "Expédié", "wilaya_name": "Batna"}]},
        )

    await carrier_holder["client"].aclose()
    carrier_holder["client"] = make_carrier(handler)
    response = await client.get(f"{API}/shipping/tracking/yal-000001")
    assert response.json() == [
        {"date": "2026-10-01 09:00:00", "status": "Expédié", "reason": None, "location": "Batna"}
    ]
