"""Deterministic outfit planning from catalog, weather and weekly memory."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from memory.weekly_log import WeeklyLogEntry, worn_item_ids
from models.clothing_item import ClothingItem
from models.outfit import OutfitPlan
from models.taxonomy import DEFAULT_OCCASION
from tools.catalog_search import search_clothes
from tools.weather_provider import WeatherSnapshot

logger = logging.getLogger(__name__)

COLD_BELOW_C = 18
HOT_ABOVE_C = 28

# slot -> (category, search limit, items picked)
SLOT_RULES = {
    "tops": ("top", 5, 2),
    "bottoms": ("bottom", 5, 1),
    "shoes": ("shoes", 3, 1),
    "socks": ("socks", 2, 1),
    "accessories": ("accessory", 3, 1),
}

PLAN_OUTFIT_DECLARATION = {
    "name": "plan_outfit",
    "description": (
        "Plan an outfit based on current weather, occasion, and wardrobe. "
        "Uses weekly memory to avoid suggesting recently worn items."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "occasion": {
                "type": "string",
                "description": "Occasion: casual, formal, business, athletic, party, beach, evening",
            },
            "weatherContext": {
                "type": "string",
                "description": "Optional additional weather context from the user",
            },
            "excludeWornThisWeek": {
                "type": "boolean",
                "description": "Exclude clothes already worn this week",
            },
        },
    },
}


def weather_buckets(weather: WeatherSnapshot) -> List[str]:
    """Coarse labels used only in the plan narrative."""

    buckets: List[str] = []
    if weather.temperature_c < COLD_BELOW_C:
        buckets.append("cold")
    elif weather.temperature_c > HOT_ABOVE_C:
        buckets.append("hot")
    if weather.precipitation_mm > 0 or weather.condition == "rainy":
        buckets.append("wet")
    return buckets


def _reason(weather: WeatherSnapshot, occasion: str) -> str:
    reason = f"Weather: {weather.temperature_c:g}°C, {weather.condition}. Occasion: {occasion}."
    buckets = weather_buckets(weather)
    if "cold" in buckets:
        reason += " It is on the cold side, so layer up."
    elif "hot" in buckets:
        reason += " It is hot, so keep it light."
    if "wet" in buckets:
        reason += " Expect rain."
    return reason


def plan_outfit(
    catalog: Sequence[ClothingItem],
    weather: WeatherSnapshot,
    weekly_log: Sequence[WeeklyLogEntry],
    occasion: Optional[str] = None,
    exclude_worn_this_week: bool = False,
) -> OutfitPlan:
    """Pick the first matching items per slot.

    Weather shapes only the ``reason`` text; item selection depends on the
    occasion and, when requested, this week's worn items.
    """

    chosen_occasion = (occasion or "").strip().lower() or DEFAULT_OCCASION
    worn: Set[str] = worn_item_ids(weekly_log) if exclude_worn_this_week else set()

    plan = OutfitPlan(reason=_reason(weather, chosen_occasion))
    for slot, (category, limit, pick) in SLOT_RULES.items():
        candidates = search_clothes(catalog, category=category, occasion=chosen_occasion, limit=limit)
        if worn:
            candidates = [item for item in candidates if item.id not in worn]
        setattr(plan, slot, candidates[:pick])

    logger.debug(
        "Planned outfit",
        extra={"occasion": chosen_occasion, "item_ids": [item.id for item in plan.items()]},
    )
    return plan


__all__ = ["PLAN_OUTFIT_DECLARATION", "SLOT_RULES", "plan_outfit", "weather_buckets"]
