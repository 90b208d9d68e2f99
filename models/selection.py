"""Selection of wardrobe items submitted for one recommendation attempt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from logic.errors import SelectionValidationError
from models.taxonomy import is_exclusive
from models.wardrobe_item import ClothingItem

MIN_SELECTION = 2
MAX_SELECTION = 4


@dataclass(frozen=True)
class SelectionSet:
    """Ordered, de-duplicated items with at most one per exclusive category."""

    items: Tuple[ClothingItem, ...]

    @classmethod
    def from_items(
        cls,
        items: Iterable[ClothingItem],
        min_items: int = MIN_SELECTION,
        max_items: int = MAX_SELECTION,
    ) -> "SelectionSet":
        unique: List[ClothingItem] = []
        seen_ids = set()
        taken: dict = {}
        for item in items:
            if item.item_id in seen_ids:
                continue
            if is_exclusive(item.category):
                if item.category in taken:
                    raise SelectionValidationError(
                        f"only one '{item.category}' item may be selected",
                        details={"category": item.category, "item_ids": [taken[item.category], item.item_id]},
                    )
                taken[item.category] = item.item_id
            seen_ids.add(item.item_id)
            unique.append(item)

        if len(unique) < min_items:
            raise SelectionValidationError(
                f"select at least {min_items} items (got {len(unique)})",
                details={"count": len(unique)},
            )
        if len(unique) > max_items:
            raise SelectionValidationError(
                f"select at most {max_items} items (got {len(unique)})",
                details={"count": len(unique)},
            )
        return cls(items=tuple(unique))

    @property
    def item_ids(self) -> List[str]:
        return [item.item_id for item in self.items]

    @property
    def image_urls(self) -> List[str]:
        return [item.image_url for item in self.items if item.image_url]

    def __len__(self) -> int:
        return len(self.items)


__all__ = ["SelectionSet", "MIN_SELECTION", "MAX_SELECTION"]
