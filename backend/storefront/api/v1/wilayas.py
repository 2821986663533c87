from __future__ import annotations

from fastapi import APIRouter

from ...core.errors import UnsupportedWilaya
from ...domain.geo import wilayas
from ..v1.schemas import WilayaOut

router = APIRouter()


def _out(entry: wilayas.WilayaEntry) -> WilayaOut:
    return WilayaOut(id=entry.id, name=entry.name, name_ar=entry.name_ar, code=entry.code)


@router.get("", response_model=list[WilayaOut])
async def list_wilayas() -> list[WilayaOut]:
    return [_out(entry) for entry in wilayas.list_all()]


@router.get("/{wilaya_id}", response_model=WilayaOut)
async def get_wilaya(wilaya_id: int) -> WilayaOut:
    entry = wilayas.get_by_id(wilaya_id)
    if entry is None:
        raise UnsupportedWilaya(wilaya_id)
    return _out(entry)
