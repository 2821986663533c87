"""Shipping quotes.

Zones, base tariffs and surcharge rates belong to the carrier and are fetched
per request. This module only assembles the parcel measurements sent along
and interprets the fee table that comes back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...core.camel import CamelModel
from ...core.config import settings
from ...core.errors import CarrierResponseError, UnsupportedWilaya
from ...core.logging import get_logger
from ..geo import wilayas

if TYPE_CHECKING:  # pragma: no cover
    from ...db.models.catalog import Product
    from ...integrations.yalidine.client import YalidineClient

logger = get_logger(__name__)

# cm³ -> kg, i.e. a 5000 divisor.
VOLUMETRIC_FACTOR = 0.0002
FREE_WEIGHT_KG = 5


@dataclass(frozen=True)
class ParcelMeasure:
    weight: float
    length: float
    width: float
    height: float


def volumetric_weight(length: float, width: float, height: float) -> float:
    return length * width * height * VOLUMETRIC_FACTOR


def billable_weight(actual_weight: float, length: float, width: float, height: float) -> float:
    return max(actual_weight, volumetric_weight(length, width, height))


def weight_fees(weight: float, oversize_fee: float) -> float:
    if weight <= FREE_WEIGHT_KG:
        return 0
    return (weight - FREE_WEIGHT_KG) * oversize_fee


def aggregate_parcel(products: Iterable["Product"]) -> ParcelMeasure:
    """Parcel size is the largest value of each measurement across the products."""

    weight = length = width = height = 0.0
    for product in products:
        weight = max(weight, float(product.weight_kg or settings.default_parcel_weight_kg))
        length = max(length, float(product.length_cm or settings.default_parcel_length_cm))
        width = max(width, float(product.width_cm or settings.default_parcel_width_cm))
        height = max(height, float(product.height_cm or settings.default_parcel_height_cm))
    return ParcelMeasure(
        weight=weight or settings.default_parcel_weight_kg,
        length=length or settings.default_parcel_length_cm,
        width=width or settings.default_parcel_width_cm,
        height=height or settings.default_parcel_height_cm,
    )


class _CommuneFees(BaseModel):
    model_config = ConfigDict(extra="ignore")

    commune_id: int | None = None
    commune_name: str | None = None
    express_home: float
    express_desk: float | None = None
    economic_home: float | None = None
    economic_desk: float | None = None


class _FeeTable(BaseModel):
    model_config = ConfigDict(extra="ignore")

    from_wilaya_name: str | None = None
    to_wilaya_name: str | None = None
    zone: int | str | None = None
    oversize_fee: float = 0
    cod_percentage: float = 0
    insurance_percentage: float = 0
    retour_fee: float | None = None
    per_commune: dict[str, _CommuneFees] = Field(min_length=1)


class PriceCell(CamelModel):
    home: float | None
    desk: float | None


class DeliveryOptions(CamelModel):
    express: PriceCell
    economic: PriceCell


class ShipmentQuote(CamelModel):
    from_wilaya: str | None
    to_wilaya: str | None
    zone: int | str | None
    weight_fees: float
    cod_fees: float
    insurance_fees: float
    delivery_options: DeliveryOptions
    billable_weight: float
    oversize_fee: float
    cod_percentage: float
    insurance_percentage: float
    return_fee: float | None


def _pick_commune(table: _FeeTable, commune_name: str | None) -> _CommuneFees:
    if commune_name:
        needle = commune_name.strip().casefold()
        for key, fees in table.per_commune.items():
            if key == commune_name or (fees.commune_name or "").casefold() == needle:
                return fees
    return next(iter(table.per_commune.values()))


def _price(base: float | None, surcharge: float) -> float | None:
    # Zero means the carrier does not offer the service for this zone.
    if not base:
        return None
    return base + surcharge


def build_quote(
    fee_table: Mapping[str, Any],
    *,
    weight: float | None = None,
    length: float | None = None,
    width: float | None = None,
    height: float | None = None,
    declared_value: float | None = None,
    commune_name: str | None = None,
) -> ShipmentQuote:
    try:
        table = _FeeTable.model_validate(fee_table)
    except ValidationError as exc:
        logger.error("carrier_fee_table_invalid", extra={"errors": exc.errors(include_url=False)})
        raise CarrierResponseError("Unexpected fee table from shipping partner") from exc

    billable = weight or 1
    surcharge: float = 0
    if weight and length and width and height:
        billable = billable_weight(weight, length, width, height)
        surcharge = weight_fees(billable, table.oversize_fee)

    cod = declared_value * table.cod_percentage / 100 if declared_value else 0
    insurance = declared_value * table.insurance_percentage / 100 if declared_value else 0

    commune = _pick_commune(table, commune_name)
    express_home = commune.express_home + surcharge
    express_desk = commune.express_desk + surcharge if commune.express_desk is not None else None
    return ShipmentQuote(
        from_wilaya=table.from_wilaya_name,
        to_wilaya=table.to_wilaya_name,
        zone=table.zone,
        weight_fees=surcharge,
        cod_fees=cod,
        insurance_fees=insurance,
        delivery_options=DeliveryOptions(
            express=PriceCell(home=express_home, desk=express_desk),
            economic=PriceCell(
                home=_price(commune.economic_home, surcharge),
                desk=_price(commune.economic_desk, surcharge),
            ),
        ),
        billable_weight=billable,
        oversize_fee=table.oversize_fee,
        cod_percentage=table.cod_percentage,
        insurance_percentage=table.insurance_percentage,
        return_fee=table.retour_fee,
    )


async def calculate_fees(
    carrier: "YalidineClient",
    from_wilaya_id: int,
    to_wilaya_id: int,
    *,
    weight: float | None = None,
    length: float | None = None,
    width: float | None = None,
    height: float | None = None,
    declared_value: float | None = None,
    commune_name: str | None = None,
) -> ShipmentQuote:
    for wilaya_id in (from_wilaya_id, to_wilaya_id):
        if not wilayas.is_valid(wilaya_id):
            raise UnsupportedWilaya(wilaya_id)

    fee_table = await carrier.get_fees(from_wilaya_id, to_wilaya_id)
    return build_quote(
        fee_table,
        weight=weight,
        length=length,
        width=width,
        height=height,
        declared_value=declared_value,
        commune_name=commune_name,
    )
