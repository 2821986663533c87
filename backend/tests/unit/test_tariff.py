from types import SimpleNamespace

import pytest

from storefront.core.errors import CarrierResponseError
from storefront.domain.shipping.tariff import (
    aggregate_parcel,
    billable_weight,
    build_quote,
    volumetric_weight,
    weight_fees,
)

FEE_TABLE = {
    "from_wilaya_name": "Batna",
    "to_wilaya_name": "Alger",
    "zone": 2,
    "retour_fee": 250,
    "cod_percentage": 1,
    "insurance_percentage": 2,
    "oversize_fee": 100,
    "per_commune": {
        "1601": {
            "commune_id": 1601,
            "commune_name": "Alger Centre",
            "express_home": 700,
            "express_desk": 450,
            "economic_home": 600,
            "economic_desk": 0,
        },
        "1602": {
            "commune_id": 1602,
            "commune_name": "Bab El Oued",
            "express_home": 750,
            "express_desk": 500,
            "economic_home": None,
            "economic_desk": None,
        },
    },
}


def test_volumetric_weight() -> None:
    assert volumetric_weight(10, 10, 10) == pytest.approx(0.2)
    assert volumetric_weight(50, 40, 30) == pytest.approx(12)


def test_billable_weight_takes_the_larger() -> None:
    assert billable_weight(1, 10, 10, 10) == pytest.approx(1)
    assert billable_weight(1, 50, 40, 30) == pytest.approx(12)


@pytest.mark.parametrize("weight, expected", [(1, 0), (5, 0), (6.5, 150), (7, 200), (12, 700)])
def test_weight_fees(weight: float, expected: float) -> None:
    assert weight_fees(weight, 100) == pytest.approx(expected)


def test_quote_without_dimensions_uses_first_commune() -> None:
    quote = build_quote(FEE_TABLE)
    assert quote.from_wilaya == "Batna"
    assert quote.to_wilaya == "Alger"
    assert quote.billable_weight == 1
    assert quote.weight_fees == 0
    assert quote.delivery_options.express.home == 700
    assert quote.delivery_options.express.desk == 450
    assert quote.delivery_options.economic.home == 600
    assert quote.delivery_options.economic.desk is None
    assert quote.return_fee == 250


def test_quote_adds_oversize_surcharge_to_every_offered_cell() -> None:
    quote = build_quote(FEE_TABLE, weight=2, length=50, width=40, height=30)
    assert quote.billable_weight == pytest.approx(12)
    assert quote.weight_fees == pytest.approx(700)
    assert quote.delivery_options.express.home == pytest.approx(1400)
    assert quote.delivery_options.economic.home == pytest.approx(1300)
    assert quote.delivery_options.economic.desk is None


def test_quote_declared_value_fees() -> None:
    quote = build_quote(FEE_TABLE, declared_value=5000)
    assert quote.cod_fees == pytest.approx(50)
    assert quote.insurance_fees == pytest.approx(100)


def test_quote_for_named_commune() -> None:
    quote = build_quote(FEE_TABLE, commune_name="bab el oued")
    assert quote.delivery_options.express.home == 750
    assert quote.delivery_options.economic.home is None


def test_quote_serializes_camel_case() -> None:
    body = build_quote(FEE_TABLE).model_dump(by_alias=True)
    assert {"fromWilaya", "deliveryOptions", "billableWeight", "returnFee", "codPercentage"} <= set(body)


@pytest.mark.parametrize(
    "table",
    [
        {},
        [],
        {**FEE_TABLE, "per_commune": {}},
        {**FEE_TABLE, "per_commune": {"1": {"express_desk": 10}}},
    ],
)
def test_malformed_fee_table(table) -> None:
    with pytest.raises(CarrierResponseError):
        build_quote(table)


def test_aggregate_parcel_takes_per_item_maximum() -> None:
    light = SimpleNamespace(weight_kg=None, length_cm=None, width_cm=None, height_cm=None)
    heavy = SimpleNamespace(weight_kg=3, length_cm=40, width_cm=None, height_cm=5)
    measure = aggregate_parcel([light, heavy])
    assert measure.weight == 3
    assert measure.length == 40
    assert measure.width == 10
    assert measure.height == 10


def test_aggregate_parcel_defaults_when_empty() -> None:
    measure = aggregate_parcel([])
    assert (measure.weight, measure.length, measure.width, measure.height) == (1, 10, 10, 10)
