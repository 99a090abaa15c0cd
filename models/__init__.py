"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.clothing_item import ClothingItem, from_catalog_record, load_catalog
from models.outfit import OutfitPlan, outfit_from_record

__all__ = ["ClothingItem", "OutfitPlan", "from_catalog_record", "load_catalog", "outfit_from_record"]
