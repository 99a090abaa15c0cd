"""The three tools the stylist model may call, wrapped with validation and logging."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from logic.outfit_planner import PLAN_OUTFIT_DECLARATION, plan_outfit
from logic.validation import GenerateOutfitInput, PlanOutfitInput, SearchClothesInput
from memory.weekly_log import WeeklyLogEntry
from models.clothing_item import ClothingItem
from models.outfit import OutfitPlan, outfit_from_record
from tools.catalog_search import SEARCH_CLOTHES_DECLARATION, search_clothes
from tools.image_composer import GENERATE_OUTFIT_DECLARATION, CompositionResult, ImageComposer
from tools.observability import instrument_tool
from tools.weather_provider import WeatherSnapshot

TOOL_DECLARATIONS: List[Dict[str, Any]] = [
    SEARCH_CLOTHES_DECLARATION,
    PLAN_OUTFIT_DECLARATION,
    GENERATE_OUTFIT_DECLARATION,
]


class StylistTools:
    """Thin wrapper exposing search, planning and composition to the orchestrator.

    Keyword arguments come straight from the model and are validated by the
    ``instrument_tool`` input models; positional arguments carry run state.
    """

    def __init__(self, composer: ImageComposer) -> None:
        self.composer = composer

    @instrument_tool("search_clothes", input_model=SearchClothesInput)
    def search_clothes(
        self,
        catalog: Sequence[ClothingItem],
        query: Optional[str] = None,
        color: Optional[str] = None,
        category: Optional[str] = None,
        occasion: Optional[str] = None,
        limit: int = 10,
    ) -> List[ClothingItem]:
        return search_clothes(catalog, query=query, color=color, category=category, occasion=occasion, limit=limit)

    @instrument_tool("plan_outfit", input_model=PlanOutfitInput)
    def plan_outfit(
        self,
        catalog: Sequence[ClothingItem],
        weather: WeatherSnapshot,
        weekly_log: Sequence[WeeklyLogEntry],
        occasion: Optional[str] = None,
        weather_context: Optional[str] = None,
        exclude_worn_this_week: bool = False,
    ) -> OutfitPlan:
        # weather_context is accepted for the model's benefit only
        return plan_outfit(
            catalog,
            weather,
            weekly_log,
            occasion=occasion,
            exclude_worn_this_week=exclude_worn_this_week,
        )

    @instrument_tool("generate_outfit_image", input_model=GenerateOutfitInput)
    def generate_outfit_image(
        self,
        fallback_outfit: Optional[OutfitPlan],
        base_photo_url: Optional[str] = None,
        outfit: Optional[Dict[str, Any]] = None,
    ) -> CompositionResult:
        """Compose the requested outfit, or ``fallback_outfit`` when the request has no usable tops."""

        requested = outfit_from_record(outfit)
        if fallback_outfit is not None and (not requested.tops or not requested.tops[0].image_url):
            requested = fallback_outfit
        return self.composer.compose(requested, base_photo=base_photo_url)

    @staticmethod
    def declarations() -> List[Dict[str, Any]]:
        return list(TOOL_DECLARATIONS)


__all__ = ["StylistTools", "TOOL_DECLARATIONS"]
