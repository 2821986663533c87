from __future__ import annotations

import unicodedata

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.config import settings
from ...core.errors import CityNotFound, UnsupportedWilaya
from ...core.logging import get_logger
from ...db.models.geo import City, DeliveryDesk
from . import wilayas
from .wilayas import WilayaEntry

logger = get_logger(__name__)


def _fold(value: str | None) -> str:
    """Casefold and strip combining marks so 'Béjaïa' and 'bejaia' compare equal."""

    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold().strip()


def _match_rank(city: City, entry: WilayaEntry) -> int | None:
    """Lower is better; ``None`` when the city does not match the wilaya at all."""

    name = _fold(city.name)
    name_ar = _fold(city.name_ar)
    aliases = {_fold(alias) for alias in entry.aliases}
    if name in aliases or (name_ar and name_ar in aliases):
        return 0
    if city.code == entry.code:
        return 1
    if any(alias and (alias in name or (name_ar and alias in name_ar)) for alias in aliases):
        return 2
    return None


async def resolve_city(session: AsyncSession, wilaya_id: int) -> City:
    entry = wilayas.get_by_id(wilaya_id)
    if entry is None:
        logger.warning("wilaya_unsupported", extra={"wilaya_id": wilaya_id})
        raise UnsupportedWilaya(wilaya_id)

    active = City.is_active.is_(True)
    result = await session.execute(select(City).where(active, City.name == entry.name).order_by(City.id).limit(1))
    city = result.scalars().first()
    if city is not None:
        return city

    conditions = [City.code == entry.code]
    for alias in sorted(entry.aliases):
        conditions.extend(
            [
                func.lower(City.name) == alias.lower(),
                City.name.ilike(f"%{alias}%"),
                City.name_ar == alias,
                City.name_ar.contains(alias),
            ]
        )
    result = await session.execute(select(City).where(active, or_(*conditions)).order_by(City.id))
    candidates = list(result.scalars().unique())
    if not candidates:
        # Diacritics and case outside ASCII are not folded by every backend's LOWER().
        result = await session.execute(select(City).where(active).order_by(City.id))
        candidates = list(result.scalars().unique())

    ranked = [(rank, city.id, city) for city in candidates if (rank := _match_rank(city, entry)) is not None]
    if ranked:
        ranked.sort(key=lambda item: (item[0], item[1]))
        city = ranked[0][2]
        logger.info(
            "city_resolved_by_alias",
            extra={"wilaya_id": wilaya_id, "city_id": city.id, "city_name": city.name},
        )
        return city

    all_cities = await session.execute(select(City.name, City.code, City.is_active).order_by(City.code))
    logger.error(
        "city_not_found",
        extra={
            "wilaya_id": wilaya_id,
            "wilaya_name": entry.name,
            "aliases": sorted(entry.aliases),
            "candidates": [f"{code}:{name}{'' if is_active else ' (inactive)'}" for name, code, is_active in all_cities],
        },
    )
    raise CityNotFound(wilaya_id, entry.name)


async def resolve_or_create_delivery_desk(
    session: AsyncSession,
    city_id: int,
    external_desk_id: str | None = None,
    external_desk_name: str | None = None,
) -> int | None:
    """Return the city's canonical pickup desk, creating one from carrier data if needed.

    The first active desk (lowest id) wins. A new desk is only flushed, never
    committed, so it shares the caller's transaction. Never raises: on a
    database error the session is rolled back and ``None`` is returned, so call
    this before staging any other writes.
    """

    try:
        result = await session.execute(
            select(DeliveryDesk)
            .where(DeliveryDesk.city_id == city_id, DeliveryDesk.is_active.is_(True))
            .order_by(DeliveryDesk.id)
            .limit(1)
        )
        desk = result.scalars().first()
        if desk is not None:
            logger.debug("delivery_desk_found", extra={"city_id": city_id, "desk_id": desk.id})
            return desk.id

        if external_desk_name:
            city = await session.get(City, city_id)
            if city is not None:
                desk = DeliveryDesk(
                    city_id=city_id,
                    name=external_desk_name,
                    name_ar=external_desk_name,
                    address=f"{settings.carrier_name} Center - {city.name}",
                    phone=None,
                    external_id=external_desk_id,
                    is_active=True,
                )
                session.add(desk)
                await session.flush()
                logger.info(
                    "delivery_desk_created",
                    extra={"city_id": city_id, "desk_id": desk.id, "desk_name": desk.name},
                )
                return desk.id
    except SQLAlchemyError:
        logger.warning("delivery_desk_resolution_failed", extra={"city_id": city_id}, exc_info=True)
        await session.rollback()
        return None

    logger.warning("delivery_desk_unresolved", extra={"city_id": city_id})
    return None


async def get_delivery_desk_info(session: AsyncSession, city_id: int) -> DeliveryDesk | None:
    result = await session.execute(
        select(DeliveryDesk)
        .where(DeliveryDesk.city_id == city_id, DeliveryDesk.is_active.is_(True))
        .order_by(DeliveryDesk.id)
        .limit(1)
    )
    return result.scalars().first()


async def list_delivery_desks(session: AsyncSession) -> list[DeliveryDesk]:
    result = await session.execute(
        select(DeliveryDesk)
        .join(DeliveryDesk.city)
        .where(DeliveryDesk.is_active.is_(True))
        .order_by(City.name, DeliveryDesk.id)
    )
    return list(result.scalars().unique())
