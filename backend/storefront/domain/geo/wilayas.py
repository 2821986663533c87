"""Static directory of the 58 Algerian wilayas.

The storefront, the city table and the carrier all spell wilaya names
differently (French colonial names, diacritics, Arabic script). Each entry
carries the accepted spellings so the rest of the code can match on any of
them. The table is built once at import time and is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

WILAYA_COUNT = 58


@dataclass(frozen=True)
class WilayaEntry:
    id: int
    name: str
    name_ar: str
    code: str
    aliases: frozenset[str]

    def matches(self, name: str) -> bool:
        needle = name.strip().casefold()
        return any(alias.casefold() == needle for alias in self.aliases)


# (id, canonical name, Arabic name, extra aliases)
_RAW_WILAYAS: tuple[tuple[int, str, str, tuple[str, ...]], ...] = (
    (1, "Adrar", "أدرار", ()),
    (2, "Chlef", "الشلف", ("El Asnam", "Orléansville")),
    (3, "Laghouat", "الأغواط", ("Laghouate",)),
    (4, "Oum El Bouaghi", "أم البواقي", ("Oum el Bouaghi", "Canrobert")),
    (5, "Batna", "باتنة", ()),
    (6, "Bejaia", "بجاية", ("Béjaïa", "Bejaïa", "Béjaia", "Bougie")),
    (7, "Biskra", "بسكرة", ()),
    (8, "Bechar", "بشار", ("Béchar", "Colomb-Béchar")),
    (9, "Blida", "البليدة", ()),
    (10, "Bouira", "البويرة", ()),
    (11, "Tamanrasset", "تمنراست", ("Tamanghasset",)),
    (12, "Tebessa", "تبسة", ("Tébessa",)),
    (13, "Tlemcen", "تلمسان", ()),
    (14, "Tiaret", "تيارت", ()),
    (15, "Tizi Ouzou", "تيزي وزو", ()),
    (16, "Algiers", "الجزائر", ("Alger", "Alger Centre")),
    (17, "Djelfa", "الجلفة", ()),
    (18, "Jijel", "جيجل", ()),
    (19, "Setif", "سطيف", ("Sétif",)),
    (20, "Saida", "سعيدة", ("Saïda",)),
    (21, "Skikda", "سكيكدة", ("Philippeville",)),
    (22, "Sidi Bel Abbes", "سيدي بلعباس", ("Sidi Bel Abbès", "Sidi Bel-Abbès")),
    (23, "Annaba", "عنابة", ("Bône",)),
    (24, "Guelma", "قالمة", ()),
    (25, "Constantine", "قسنطينة", ()),
    (26, "Medea", "المدية", ("Médéa",)),
    (27, "Mostaganem", "مستغانم", ()),
    (28, "Msila", "المسيلة", ("M'Sila", "M'sila")),
    (29, "Mascara", "معسكر", ()),
    (30, "Ouargla", "ورقلة", ()),
    (31, "Oran", "وهران", ()),
    (32, "El Bayadh", "البيض", ()),
    (33, "Illizi", "إليزي", ()),
    (34, "Bordj Bou Arreridj", "برج بوعريريج", ("Bordj Bou Arréridj",)),
    (35, "Boumerdes", "بومرداس", ("Boumerdès",)),
    (36, "El Tarf", "الطارف", ()),
    (37, "Tindouf", "تندوف", ()),
    (38, "Tissemsilt", "تيسمسيلت", ()),
    (39, "El Oued", "الوادي", ()),
    (40, "Khenchela", "خنشلة", ()),
    (41, "Souk Ahras", "سوق أهراس", ()),
    (42, "Tipaza", "تيبازة", ("Tipasa",)),
    (43, "Mila", "ميلة", ()),
    (44, "Ain Defla", "عين الدفلى", ("Aïn Defla",)),
    (45, "Naama", "النعامة", ("Naâma",)),
    (46, "Ain Temouchent", "عين تموشنت", ("Aïn Témouchent",)),
    (47, "Ghardaia", "غرداية", ("Ghardaïa",)),
    (48, "Relizane", "غليزان", ()),
    (49, "Timimoun", "تيميمون", ()),
    (50, "Bordj Badji Mokhtar", "برج باجي مختار", ()),
    (51, "Ouled Djellal", "أولاد جلال", ()),
    (52, "Beni Abbes", "بني عباس", ("Béni Abbès",)),
    (53, "In Salah", "عين صالح", ("Ain Salah",)),
    (54, "In Guezzam", "عين قزام", ("Ain Guezzam",)),
    (55, "Touggourt", "تقرت", ()),
    (56, "Djanet", "جانت", ()),
    (57, "El M'Ghair", "المغير", ("El Meghaier", "El Mghair")),
    (58, "El Meniaa", "المنيعة", ("El Menia", "El Ménéa")),
)


def _build_directory() -> Mapping[int, WilayaEntry]:
    entries: dict[int, WilayaEntry] = {}
    for wilaya_id, name, name_ar, extra in _RAW_WILAYAS:
        if wilaya_id in entries or not 1 <= wilaya_id <= WILAYA_COUNT:
            raise ValueError(f"Invalid wilaya id in directory: {wilaya_id}")
        entries[wilaya_id] = WilayaEntry(
            id=wilaya_id,
            name=name,
            name_ar=name_ar,
            code=f"{wilaya_id:02d}",
            aliases=frozenset((name, name_ar, *extra)),
        )
    return MappingProxyType(entries)


_DIRECTORY = _build_directory()


def get_by_id(wilaya_id: int) -> WilayaEntry | None:
    return _DIRECTORY.get(wilaya_id)


def get_by_name(name: str | None) -> tuple[int, WilayaEntry] | None:
    """Case-insensitive exact match against every accepted spelling."""

    if not name or not name.strip():
        return None
    for wilaya_id, entry in _DIRECTORY.items():
        if entry.matches(name):
            return wilaya_id, entry
    return None


def get_name(wilaya_id: int) -> str | None:
    entry = get_by_id(wilaya_id)
    return entry.name if entry else None


def get_name_arabic(wilaya_id: int) -> str | None:
    entry = get_by_id(wilaya_id)
    return entry.name_ar if entry else None


def list_all() -> list[WilayaEntry]:
    return list(_DIRECTORY.values())


def is_valid(wilaya_id: int) -> bool:
    return 1 <= wilaya_id <= WILAYA_COUNT and wilaya_id in _DIRECTORY
