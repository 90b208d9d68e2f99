"""Fill in a partial selection from the wardrobe before analysis.

The user's own picks are always kept; missing top/bottom/outer/shoes slots are
filled from items suited to the current temperature, with diagnostics that
explain every choice.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from logic.errors import SelectionValidationError
from models.selection import MAX_SELECTION, MIN_SELECTION
from models.taxonomy import is_exclusive, seasons_for_temperature
from models.wardrobe_item import ClothingItem

logger = logging.getLogger(__name__)

OUTER_LAYER_MAX_TEMPERATURE = 15


@dataclass(frozen=True)
class CompletionResult:
    items: List[ClothingItem]
    diagnostics: Dict[str, object]


def filter_by_season(items: Sequence[ClothingItem], temperature: Optional[float]) -> List[ClothingItem]:
    """Keep items tagged for the temperature's seasons.

    Falls back to the full wardrobe when fewer than two items qualify.
    """

    if temperature is None:
        return list(items)
    seasons = set(seasons_for_temperature(temperature))
    seasonal = [item for item in items if seasons.intersection(item.seasons)]
    return seasonal if len(seasonal) >= MIN_SELECTION else list(items)


def complete_selection(
    selected: Sequence[ClothingItem],
    wardrobe: Sequence[ClothingItem],
    temperature: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> CompletionResult:
    """Return the user's selection topped up into a wearable outfit."""

    rng = rng or random.Random()
    final_items: List[ClothingItem] = list(selected)
    selected_ids = {item.item_id for item in selected}
    selected_categories = {item.category for item in selected}

    available = filter_by_season(wardrobe, temperature)
    remaining = [item for item in available if item.item_id not in selected_ids]
    by_category: Dict[str, List[ClothingItem]] = {}
    for item in remaining:
        by_category.setdefault(item.category, []).append(item)

    added: Dict[str, str] = {}

    def pick(category: str) -> None:
        candidates = by_category.get(category) or []
        if category in selected_categories or not candidates:
            return
        choice = rng.choice(candidates)
        final_items.append(choice)
        added[category] = choice.item_id

    pick("top")
    pick("bottom")
    if (
        temperature is not None
        and temperature <= OUTER_LAYER_MAX_TEMPERATURE
        and len(final_items) < MAX_SELECTION
    ):
        pick("outer")
    if len(final_items) < MAX_SELECTION:
        pick("shoes")

    if len(final_items) < MIN_SELECTION and remaining:
        used = {item.item_id for item in final_items}
        taken = {item.category for item in final_items if is_exclusive(item.category)}
        fillers = [item for item in remaining if item.item_id not in used and item.category not in taken]
        final_items.extend(fillers[: MIN_SELECTION - len(final_items)])

    unique: Dict[str, ClothingItem] = {}
    for item in final_items:
        unique.setdefault(item.item_id, item)
    items = list(unique.values())[:MAX_SELECTION]

    if len(items) < MIN_SELECTION:
        raise SelectionValidationError(
            "not enough wardrobe items to complete an outfit",
            details={"count": len(items)},
        )

    diagnostics = {
        "temperature": temperature,
        "seasonal_pool": len(available),
        "added": added,
        "final_ids": [item.item_id for item in items],
    }
    logger.info("Completed selection", extra={"added": added, "final_count": len(items)})
    return CompletionResult(items=items, diagnostics=diagnostics)


__all__ = ["CompletionResult", "complete_selection", "filter_by_season"]
