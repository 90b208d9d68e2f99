"""Canonical taxonomy for wardrobe categories, styles and seasons.

Helper functions keep validation consistent between the selection rules, the
prompt builder and the smart outfit completion.
"""

from typing import Dict, List, Optional


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_").replace("-", "_")


CATEGORIES: List[str] = ["top", "bottom", "outer", "shoes", "accessory"]

# At most one item of each of these may appear in a single outfit.
EXCLUSIVE_CATEGORIES = frozenset({"top", "bottom", "outer", "shoes"})

CATEGORY_ALIASES: Dict[str, str] = {
    "tops": "top",
    "shirt": "top",
    "blouse": "top",
    "bottoms": "bottom",
    "pants": "bottom",
    "trousers": "bottom",
    "skirt": "bottom",
    "outerwear": "outer",
    "jacket": "outer",
    "coat": "outer",
    "footwear": "shoes",
    "shoe": "shoes",
    "accessories": "accessory",
    "acc": "accessory",
}

FASHION_STYLES: List[str] = [
    "casual",
    "formal",
    "street",
    "vintage",
    "minimal",
    "sporty",
    "feminine",
    "dandy",
    "other",
]

SEASONS: List[str] = ["spring", "summer", "autumn", "winter"]

SEASON_ALIASES: Dict[str, str] = {"fall": "autumn"}


def validate_category(category: str) -> str:
    """Return the canonical category key or raise ``ValueError``."""

    key = _normalize_key(category)
    key = CATEGORY_ALIASES.get(key, key)
    if key not in CATEGORIES:
        raise ValueError(f"Unknown category '{category}'. Expected one of {CATEGORIES}.")
    return key


def is_exclusive(category: str) -> bool:
    return category in EXCLUSIVE_CATEGORIES


def normalize_style(style: Optional[str]) -> Optional[str]:
    """Lower-case a style tag; unknown styles are kept verbatim rather than rejected."""

    if style is None:
        return None
    cleaned = style.strip().lower()
    return cleaned or None


def normalize_seasons(raw: object) -> List[str]:
    """Accept a list or a comma separated string of seasons."""

    if raw is None:
        return []
    if isinstance(raw, str):
        values = [part for part in raw.replace("/", ",").split(",")]
    else:
        values = [str(part) for part in raw]  # type: ignore[union-attr]
    seasons: List[str] = []
    for value in values:
        key = _normalize_key(value)
        key = SEASON_ALIASES.get(key, key)
        if key in SEASONS and key not in seasons:
            seasons.append(key)
    return seasons


def seasons_for_temperature(temperature: float) -> List[str]:
    """Map a temperature in Celsius to the seasons whose clothes suit it."""

    if temperature <= 5:
        return ["winter"]
    if temperature <= 15:
        return ["autumn", "spring"]
    if temperature <= 25:
        return ["spring", "summer"]
    return ["summer"]


__all__ = [
    "CATEGORIES",
    "EXCLUSIVE_CATEGORIES",
    "CATEGORY_ALIASES",
    "FASHION_STYLES",
    "SEASONS",
    "validate_category",
    "is_exclusive",
    "normalize_style",
    "normalize_seasons",
    "seasons_for_temperature",
]
