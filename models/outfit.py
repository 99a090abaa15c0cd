"""Outfit plan schema shared by the planner, composer and orchestrator."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from models.clothing_item import ClothingItem, from_catalog_record

SLOTS = ("tops", "bottoms", "shoes", "socks", "accessories")


@dataclass
class OutfitPlan:
    tops: List[ClothingItem] = field(default_factory=list)
    bottoms: List[ClothingItem] = field(default_factory=list)
    shoes: List[ClothingItem] = field(default_factory=list)
    socks: List[ClothingItem] = field(default_factory=list)
    accessories: List[ClothingItem] = field(default_factory=list)
    reason: str = ""

    def items(self) -> List[ClothingItem]:
        """All selected items in slot order."""

        return [item for slot in SLOTS for item in getattr(self, slot)]

    def item_names(self) -> List[str]:
        return [item.name for item in self.items() if item.name]

    def is_empty(self) -> bool:
        return not self.items()

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {slot: [item.to_record() for item in getattr(self, slot)] for slot in SLOTS}
        record["reason"] = self.reason
        return record


def outfit_from_record(record: Dict[str, Any] | None) -> OutfitPlan:
    """Rebuild an outfit from model-supplied JSON, skipping entries that do not parse."""

    record = record if isinstance(record, dict) else {}
    plan = OutfitPlan(reason=str(record.get("reason") or ""))
    for slot in SLOTS:
        values = record.get(slot)
        if not isinstance(values, list):
            continue
        for raw in values:
            if not isinstance(raw, dict):
                continue
            try:
                getattr(plan, slot).append(from_catalog_record(raw))
            except ValueError:
                continue
    return plan


__all__ = ["OutfitPlan", "SLOTS", "outfit_from_record"]
