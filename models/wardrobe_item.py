"""Clothing item reference used by selections and saved outfits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from models.taxonomy import normalize_seasons, validate_category


@dataclass(frozen=True)
class ClothingItem:
    """A wardrobe item as seen by the recommendation orchestrator.

    ``item_id`` is opaque and stable; ``category`` is always canonical.
    """

    item_id: str
    category: str
    name: str = ""
    color: str = ""
    brand: str = ""
    image_url: Optional[str] = None
    seasons: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not str(self.item_id).strip():
            raise ValueError("item_id is required")
        object.__setattr__(self, "item_id", str(self.item_id))
        object.__setattr__(self, "category", validate_category(self.category))
        object.__setattr__(self, "seasons", tuple(normalize_seasons(self.seasons)))

    def describe(self) -> str:
        """One-line description used in prompts."""

        details = ", ".join(part for part in (self.category, self.color, self.brand) if part)
        return f"{self.name or self.item_id} ({details})"

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.item_id,
            "name": self.name,
            "category": self.category,
            "color": self.color,
            "brand": self.brand,
            "imageUrl": self.image_url,
        }


def from_raw_item(metadata: Dict[str, Any]) -> ClothingItem:
    """Build a :class:`ClothingItem` from loose client or store metadata."""

    item_id = metadata.get("item_id") or metadata.get("id")
    if not item_id or not metadata.get("category"):
        raise ValueError("Missing required fields for ClothingItem: ['item_id', 'category']")
    return ClothingItem(
        item_id=str(item_id),
        category=str(metadata["category"]),
        name=str(metadata.get("name") or ""),
        color=str(metadata.get("color") or ""),
        brand=str(metadata.get("brand") or ""),
        image_url=metadata.get("image_url") or metadata.get("imageUrl"),
        seasons=tuple(normalize_seasons(metadata.get("seasons"))),
    )


__all__ = ["ClothingItem", "from_raw_item"]
