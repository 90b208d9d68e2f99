"""Deterministic keys for recommendation requests and saved outfits.

``build_fingerprint`` keys the session cache; ``build_item_set_hash`` keys
saved outfits. Both sort the ids first so selection order never matters.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from models.taxonomy import normalize_style

TEMPERATURE_BUCKET_SIZE = 5
NONE_SENTINEL = "none"
FINGERPRINT_SEPARATOR = "|"
ITEM_SET_SEPARATOR = "__"


def temperature_bucket(temperature: Optional[float]) -> str:
    """Floor a temperature to its 5-degree bucket, ``"none"`` when absent or not finite."""

    if temperature is None or not math.isfinite(temperature):
        return NONE_SENTINEL
    bucket = math.floor(temperature / TEMPERATURE_BUCKET_SIZE) * TEMPERATURE_BUCKET_SIZE
    return str(int(bucket))


def _sorted_ids(ids: Iterable[str]) -> list:
    # Duplicate ids collapse, so ["a", "a", "b"] keys the same as ["a", "b"].
    return sorted({str(item_id) for item_id in ids})


def build_fingerprint(ids: Iterable[str], style: Optional[str], temperature: Optional[float]) -> str:
    """Cache key from the id set, style and temperature bucket.

    >>> build_fingerprint(["shirt#1", "jeans#2"], "casual", 18)
    'jeans#2|shirt#1|casual|15'
    """

    style_key = normalize_style(style) or NONE_SENTINEL
    parts = _sorted_ids(ids) + [style_key, temperature_bucket(temperature)]
    return FINGERPRINT_SEPARATOR.join(parts)


def build_item_set_hash(ids: Iterable[str]) -> str:
    """Content key of an item-id set, shared by fresh analyses and stored records."""

    return ITEM_SET_SEPARATOR.join(_sorted_ids(ids))


__all__ = [
    "build_fingerprint",
    "build_item_set_hash",
    "temperature_bucket",
    "TEMPERATURE_BUCKET_SIZE",
]
