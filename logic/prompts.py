"""Prompt text for the stylist model."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from models.selection import SelectionSet
from models.taxonomy import FASHION_STYLES
from models.wardrobe_item import ClothingItem

GUARDRAIL_BULLETS: List[str] = [
    "Only judge the clothing items listed and shown in the images.",
    "Do not comment on the person wearing the clothes or their body.",
    "Keep advice practical and kind, two to three sentences.",
    "Reply with the JSON object only, without markdown or extra commentary.",
]

RESPONSE_SHAPE = """{
  "compatibility": 1-10 score for the overall combination,
  "colorHarmony": {
    "score": 1-10 score for the colors,
    "description": "how the colors work together",
    "complementaryColors": ["suggested accent color 1", "suggested accent color 2"]
  },
  "styleConsistency": 1-10 score for style consistency,
  "advice": "overall styling advice, 2-3 sentences",
  "suggestions": ["improvement 1", "improvement 2", "improvement 3"]
}"""


def _has_temperature(temperature: Optional[float]) -> bool:
    return temperature is not None and math.isfinite(temperature)


def system_instruction(role_hint: str) -> str:
    """Compose a consistent preamble with boundary reminders."""

    boundary_text = "\n".join(f"- {bullet}" for bullet in GUARDRAIL_BULLETS)
    return f"You are a professional fashion {role_hint}.\nFollow these rules:\n{boundary_text}"


def build_outfit_prompt(
    selection: SelectionSet,
    style: Optional[str] = None,
    temperature: Optional[float] = None,
) -> str:
    """Ask the model to analyse the selected combination."""

    items_description = "\n".join(
        f"{index}. {item.describe()}" for index, item in enumerate(selection.items, start=1)
    )
    context_lines = []
    if style:
        context_lines.append(f"Preferred style: {style}")
    if _has_temperature(temperature):
        context_lines.append(
            f"Current temperature: {temperature:g}°C - the outfit must suit this temperature."
        )
    context = "\n".join(context_lines)

    sections = [
        system_instruction("stylist analysing an outfit combination"),
        f"Selected items:\n{items_description}",
    ]
    if context:
        sections.append(context)
    sections.append(f"Respond in this JSON format:\n{RESPONSE_SHAPE}")
    return "\n\n".join(sections)


ITEM_RESPONSE_SHAPE = """{
  "style": "one of STYLE_CHOICES",
  "description": "the item's style in 1-2 sentences",
  "matchingSuggestions": ["item that pairs well 1", "item that pairs well 2", "item that pairs well 3"]
}""".replace("STYLE_CHOICES", "|".join(FASHION_STYLES))

PURCHASE_RESPONSE_SHAPE = """{
  "recommendations": [
    {
      "category": "top, bottom, outer, shoes or accessory",
      "item": "a specific item, e.g. brown chinos or wide slacks",
      "reason": "why the wardrobe needs it, 1-2 sentences"
    }
  ]
}"""


def build_item_prompt(item: ClothingItem) -> str:
    """Ask the model to read the style of one item."""

    details = "\n".join(
        f"- {label}: {value}"
        for label, value in (
            ("Name", item.name),
            ("Category", item.category),
            ("Color", item.color),
            ("Brand", item.brand),
        )
        if value
    )
    return "\n\n".join(
        [
            system_instruction("stylist analysing a single clothing item"),
            f"Item:\n{details}",
            f"Respond in this JSON format:\n{ITEM_RESPONSE_SHAPE}",
        ]
    )


def build_purchase_prompt(
    wardrobe: Sequence[ClothingItem],
    style: Optional[str] = None,
    temperature: Optional[float] = None,
) -> str:
    """Ask for 3-5 new items that fill gaps in ``wardrobe``. No images are sent."""

    inventory = "\n".join(
        f"- {item.category} - {' '.join(part for part in (item.color, item.name) if part) or item.item_id}"
        + (f" ({item.brand})" if item.brand else "")
        for item in wardrobe
    )
    summary = [f"Current wardrobe ({len(wardrobe)} items):\n{inventory or '- (empty)'}"]
    if style:
        summary.append(f"Preferred style: {style}")
    if _has_temperature(temperature):
        summary.append(f"Current temperature: {temperature:g}°C")

    rules = [
        "Never recommend anything similar to or duplicating an item already in the wardrobe.",
        "Only recommend categories, colors or styles the wardrobe lacks.",
    ]
    if _has_temperature(temperature):
        rules.append(f"Prefer items that are useful at {temperature:g}°C this season.")

    return "\n\n".join(
        [
            system_instruction("stylist recommending new purchases for a wardrobe"),
            "\n".join(summary),
            "\n".join(f"- {rule}" for rule in rules),
            f"Recommend 3 to 5 new items in this JSON format:\n{PURCHASE_RESPONSE_SHAPE}",
        ]
    )


__all__ = [
    "GUARDRAIL_BULLETS",
    "build_item_prompt",
    "build_outfit_prompt",
    "build_purchase_prompt",
    "system_instruction",
]
