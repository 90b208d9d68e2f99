"""Pydantic schemas for the stylist model's JSON replies."""

from __future__ import annotations

import math
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.outfit import ColorHarmony, ItemInsight, OutfitAnalysis, PurchaseSuggestion
from models.selection import SelectionSet
from models.taxonomy import FASHION_STYLES, normalize_style
from models.wardrobe_item import ClothingItem

SCORE_MIN = 1
SCORE_MAX = 10
MAX_PURCHASE_SUGGESTIONS = 5


def _coerce_score(value: Any) -> Any:
    """Round numeric scores and clamp them into the 1..10 range.

    Non-finite numbers (``NaN``, ``Infinity``, ``1e999``) are rejected.
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return value
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"score must be a finite number, got {value!r}")
    if isinstance(value, (int, float)):
        return max(SCORE_MIN, min(SCORE_MAX, int(round(value))))
    return value


class ColorHarmonyPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    score: int
    description: str = ""
    complementary_colors: List[str] = Field(default_factory=list, alias="complementaryColors")

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> Any:
        return _coerce_score(value)


class OutfitAnalysisPayload(BaseModel):
    """Wire shape requested from the model in the stylist prompt."""

    model_config = ConfigDict(populate_by_name=True)

    compatibility: int
    color_harmony: ColorHarmonyPayload = Field(alias="colorHarmony")
    style_consistency: int = Field(alias="styleConsistency")
    advice: str
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("compatibility", "style_consistency", mode="before")
    @classmethod
    def _clamp_scores(cls, value: Any) -> Any:
        return _coerce_score(value)

    @field_validator("suggestions", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    def to_analysis(self, selection: SelectionSet) -> OutfitAnalysis:
        return OutfitAnalysis(
            compatibility=self.compatibility,
            color_harmony=ColorHarmony(
                score=self.color_harmony.score,
                description=self.color_harmony.description,
                complementary_colors=tuple(self.color_harmony.complementary_colors),
            ),
            style_consistency=self.style_consistency,
            advice=self.advice,
            suggestions=tuple(self.suggestions),
            selected_items=selection.items,
        )


class ItemInsightPayload(BaseModel):
    """Reply shape for a single-item style reading."""

    model_config = ConfigDict(populate_by_name=True)

    style: str
    description: str
    matching_suggestions: List[str] = Field(default_factory=list, alias="matchingSuggestions")

    @field_validator("style", mode="before")
    @classmethod
    def _known_style(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        style = normalize_style(value)
        return style if style in FASHION_STYLES else "other"

    @field_validator("matching_suggestions", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    def to_insight(self, item: ClothingItem) -> ItemInsight:
        return ItemInsight(
            item_id=item.item_id,
            style=self.style,
            description=self.description,
            matching_suggestions=tuple(self.matching_suggestions),
        )


class PurchaseSuggestionPayload(BaseModel):
    category: str
    item: str
    reason: str = ""


class PurchaseRecommendationsPayload(BaseModel):
    """Reply shape for wardrobe gap recommendations; extras past the fifth are dropped."""

    recommendations: List[PurchaseSuggestionPayload] = Field(min_length=1)

    def to_suggestions(self) -> List[PurchaseSuggestion]:
        return [
            PurchaseSuggestion(category=entry.category, item=entry.item, reason=entry.reason)
            for entry in self.recommendations[:MAX_PURCHASE_SUGGESTIONS]
        ]


__all__ = [
    "ColorHarmonyPayload",
    "ItemInsightPayload",
    "OutfitAnalysisPayload",
    "PurchaseRecommendationsPayload",
    "PurchaseSuggestionPayload",
]
