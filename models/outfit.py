"""Outfit analysis results and saved outfit records."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from models.wardrobe_item import ClothingItem, from_raw_item


@dataclass(frozen=True)
class ColorHarmony:
    score: int
    description: str
    complementary_colors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OutfitAnalysis:
    """Recommendation result for one selection. Immutable once produced."""

    compatibility: int
    color_harmony: ColorHarmony
    style_consistency: int
    advice: str
    suggestions: Tuple[str, ...]
    selected_items: Tuple[ClothingItem, ...]

    @property
    def item_ids(self) -> List[str]:
        return [item.item_id for item in self.selected_items]

    def to_dict(self) -> Dict[str, Any]:
        """Serialise using the camelCase wire shape plus the selected items."""

        return {
            "compatibility": self.compatibility,
            "colorHarmony": {
                "score": self.color_harmony.score,
                "description": self.color_harmony.description,
                "complementaryColors": list(self.color_harmony.complementary_colors),
            },
            "styleConsistency": self.style_consistency,
            "advice": self.advice,
            "suggestions": list(self.suggestions),
            "selectedItems": [item.snapshot() for item in self.selected_items],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "OutfitAnalysis":
        harmony = payload.get("colorHarmony") or {}
        return cls(
            compatibility=int(payload["compatibility"]),
            color_harmony=ColorHarmony(
                score=int(harmony.get("score", 0)),
                description=str(harmony.get("description", "")),
                complementary_colors=tuple(harmony.get("complementaryColors") or ()),
            ),
            style_consistency=int(payload["styleConsistency"]),
            advice=str(payload.get("advice", "")),
            suggestions=tuple(payload.get("suggestions") or ()),
            selected_items=tuple(from_raw_item(raw) for raw in payload.get("selectedItems") or ()),
        )


@dataclass(frozen=True)
class ItemInsight:
    """Style reading for a single wardrobe item."""

    item_id: str
    style: str
    description: str
    matching_suggestions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "style": self.style,
            "description": self.description,
            "matchingSuggestions": list(self.matching_suggestions),
        }


@dataclass(frozen=True)
class PurchaseSuggestion:
    """An item the wardrobe is missing, with the reason to buy it."""

    category: str
    item: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeatherSnapshot:
    """Weather at the time an outfit was saved."""

    temperature: float
    feels_like: Optional[float] = None
    humidity: Optional[float] = None
    condition: str = ""
    wind_speed: Optional[float] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SavedOutfitRecord:
    """Persisted outfit keyed by the hash of its item-id set."""

    record_id: str
    owner_id: str
    item_ids: List[str]
    item_ids_hash: str
    analysis: OutfitAnalysis
    saved_at: datetime
    preferred_style: Optional[str] = None
    weather: Optional[WeatherSnapshot] = None
    cover_image: str = ""
    items: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.record_id,
            "owner_id": self.owner_id,
            "itemIds": list(self.item_ids),
            "itemIdsHash": self.item_ids_hash,
            "items": list(self.items),
            "analysis": self.analysis.to_dict(),
            "preferredStyle": self.preferred_style,
            "weatherSnapshot": self.weather.to_dict() if self.weather else None,
            "coverImage": self.cover_image,
            "savedAt": self.saved_at.isoformat(),
        }


__all__ = [
    "ColorHarmony",
    "OutfitAnalysis",
    "ItemInsight",
    "PurchaseSuggestion",
    "WeatherSnapshot",
    "SavedOutfitRecord",
]
