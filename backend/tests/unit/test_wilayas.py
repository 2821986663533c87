import dataclasses

import pytest

from storefront.domain.geo import wilayas


def test_directory_covers_all_wilayas() -> None:
    entries = wilayas.list_all()
    assert [entry.id for entry in entries] == list(range(1, wilayas.WILAYA_COUNT + 1))


@pytest.mark.parametrize("wilaya_id", range(1, 59))
def test_every_entry_is_well_formed(wilaya_id: int) -> None:
    entry = wilayas.get_by_id(wilaya_id)
    assert entry is not None
    assert len(entry.code) == 2 and entry.code.isdigit()
    assert int(entry.code) == wilaya_id
    assert entry.name in entry.aliases
    assert entry.name_ar in entry.aliases


def test_newest_wilayas_are_distinct() -> None:
    assert wilayas.get_name(57) == "El M'Ghair"
    assert wilayas.get_name(58) == "El Meniaa"
    assert wilayas.get_name(28) == "Msila"


def test_get_by_name_accepts_any_spelling() -> None:
    assert wilayas.get_by_name("alger")[0] == 16
    assert wilayas.get_by_name("  ALGIERS ")[0] == 16
    assert wilayas.get_by_name("Béjaïa")[0] == 6
    assert wilayas.get_by_name("الجزائر")[0] == 16


@pytest.mark.parametrize("name", [None, "", "   ", "Atlantis"])
def test_get_by_name_unknown(name) -> None:
    assert wilayas.get_by_name(name) is None


def test_arabic_and_unknown_ids() -> None:
    assert wilayas.get_name_arabic(5) == "باتنة"
    assert wilayas.get_name(0) is None
    assert wilayas.get_name_arabic(59) is None
    assert not wilayas.is_valid(0)
    assert not wilayas.is_valid(59)
    assert wilayas.is_valid(58)


def test_directory_is_read_only() -> None:
    entry = wilayas.get_by_id(16)
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.name = "Somewhere"  # type: ignore[misc]
    with pytest.raises(TypeError):
        wilayas._DIRECTORY[99] = entry  # type: ignore[index]
