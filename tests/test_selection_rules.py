"""Selection, taxonomy and smart completion tests."""

import random

import pytest

from logic.errors import SelectionValidationError
from logic.outfit_builder import complete_selection, filter_by_season
from models.selection import SelectionSet
from models.taxonomy import normalize_seasons, seasons_for_temperature, validate_category
from models.wardrobe_item import ClothingItem, from_raw_item


@pytest.mark.parametrize(
    "raw, expected",
    [("Outerwear", "outer"), ("jacket", "outer"), ("footwear", "shoes"), ("Pants", "bottom"), ("top", "top")],
)
def test_category_aliases_are_canonicalised(raw: str, expected: str) -> None:
    assert validate_category(raw) == expected


def test_unknown_category_is_rejected() -> None:
    with pytest.raises(ValueError):
        ClothingItem(item_id="x", category="hat-stand")


def test_seasons_accept_strings_and_aliases() -> None:
    assert normalize_seasons("Fall, winter") == ["autumn", "winter"]
    assert normalize_seasons(None) == []


@pytest.mark.parametrize(
    "temperature, seasons",
    [(-3, ["winter"]), (5, ["winter"]), (12, ["autumn", "spring"]), (20, ["spring", "summer"]), (30, ["summer"])],
)
def test_seasons_for_temperature(temperature: float, seasons) -> None:
    assert seasons_for_temperature(temperature) == seasons


def test_from_raw_item_accepts_client_keys() -> None:
    item = from_raw_item({"id": "scarf#5", "category": "accessories", "imageUrl": "https://x/y.jpg"})
    assert item.item_id == "scarf#5"
    assert item.category == "accessory"
    assert item.image_url == "https://x/y.jpg"


def test_selection_collapses_duplicates_keeping_first(shirt, jeans) -> None:
    selection = SelectionSet.from_items([shirt, jeans, shirt])
    assert selection.item_ids == ["shirt#1", "jeans#2"]
    assert len(selection) == 2


def test_selection_allows_several_accessories(shirt, jeans) -> None:
    belt = ClothingItem(item_id="belt#1", category="accessory")
    watch = ClothingItem(item_id="watch#1", category="accessory")
    assert len(SelectionSet.from_items([shirt, jeans, belt, watch])) == 4


def test_selection_rejects_two_items_in_exclusive_category(shirt) -> None:
    tee = ClothingItem(item_id="tee#2", category="top")
    with pytest.raises(SelectionValidationError) as excinfo:
        SelectionSet.from_items([shirt, tee])
    assert excinfo.value.details["category"] == "top"


def test_selection_size_bounds(shirt, jeans, sneakers, coat) -> None:
    scarf = ClothingItem(item_id="scarf#5", category="accessory")
    with pytest.raises(SelectionValidationError):
        SelectionSet.from_items([shirt])
    with pytest.raises(SelectionValidationError):
        SelectionSet.from_items([shirt, jeans, sneakers, coat, scarf])


def test_filter_by_season_falls_back_to_full_wardrobe(shirt, coat) -> None:
    assert filter_by_season([shirt, coat], None) == [shirt, coat]
    assert filter_by_season([shirt, coat], 30) == [shirt, coat]


def test_complete_selection_tops_up_to_two_items(coat) -> None:
    scarf = ClothingItem(item_id="scarf#5", category="accessory")
    result = complete_selection([coat], [coat, scarf], temperature=2, rng=random.Random(1))
    assert [item.item_id for item in result.items] == ["coat#4", "scarf#5"]


def test_complete_selection_keeps_user_pick_and_caps_at_four(shirt, jeans, sneakers, coat) -> None:
    result = complete_selection([shirt, jeans, sneakers, coat], [shirt, jeans, sneakers, coat], temperature=0)
    assert [item.item_id for item in result.items] == ["shirt#1", "jeans#2", "sneakers#3", "coat#4"]
    assert result.diagnostics["added"] == {}


def test_complete_selection_fails_without_enough_items(shirt) -> None:
    with pytest.raises(SelectionValidationError):
        complete_selection([shirt], [shirt], temperature=20)
