"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.wardrobe_item import ClothingItem, from_raw_item
from models.outfit import (
    ColorHarmony,
    ItemInsight,
    OutfitAnalysis,
    PurchaseSuggestion,
    SavedOutfitRecord,
    WeatherSnapshot,
)

__all__ = [
    "ClothingItem",
    "from_raw_item",
    "ColorHarmony",
    "ItemInsight",
    "OutfitAnalysis",
    "PurchaseSuggestion",
    "SavedOutfitRecord",
    "WeatherSnapshot",
]
