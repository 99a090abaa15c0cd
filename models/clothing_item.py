"""Clothing item data model and catalog loading helpers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.taxonomy import normalise_occasions, validate_category

LOGGER = logging.getLogger(__name__)


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _clean_strings(values: Iterable[Any]) -> Tuple[str, ...]:
    return tuple(str(value).strip() for value in values if str(value).strip())


@dataclass(frozen=True)
class ClothingItem:
    """One indexed garment photo from the user's wardrobe."""

    id: str
    name: str
    category: str
    primary_color: str
    image_url: str
    colors: Tuple[str, ...] = ()
    occasions: Tuple[str, ...] = ()
    style: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    created_at: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """Serialise using the catalog's JSON field names."""

        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "color": self.primary_color,
            "colors": list(self.colors),
            "occasion": list(self.occasions),
            "style": list(self.style),
            "tags": list(self.tags),
            "imageUrl": self.image_url,
            "createdAt": self.created_at,
        }


def from_catalog_record(record: Dict[str, Any]) -> ClothingItem:
    """Factory to build a :class:`ClothingItem` from a ``catalog.json`` record."""

    required_fields = ["id", "name", "category"]
    missing = [name for name in required_fields if not record.get(name)]
    if missing:
        raise ValueError(f"Missing required fields for ClothingItem: {missing}")

    colors = list(_clean_strings(_ensure_list(record.get("colors"))))
    primary_color = str(record.get("color") or (colors[0] if colors else "")).strip()
    if primary_color and primary_color not in colors:
        colors.insert(0, primary_color)

    return ClothingItem(
        id=str(record["id"]),
        name=str(record["name"]),
        category=validate_category(str(record["category"])),
        primary_color=primary_color,
        image_url=str(record.get("imageUrl") or record.get("image_url") or ""),
        colors=tuple(colors),
        occasions=tuple(normalise_occasions(_ensure_list(record.get("occasion", record.get("occasions"))))),
        style=_clean_strings(_ensure_list(record.get("style"))),
        tags=_clean_strings(_ensure_list(record.get("tags"))),
        created_at=record.get("createdAt") or record.get("created_at"),
    )


def load_catalog(path: str | Path) -> List[ClothingItem]:
    """Read the catalog snapshot; a missing or unreadable file is an empty wardrobe."""

    catalog_path = Path(path)
    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOGGER.info("Catalog unavailable, treating wardrobe as empty", extra={"reason": str(exc)})
        return []
    if not isinstance(raw, list):
        return []

    items: List[ClothingItem] = []
    for record in raw:
        if not isinstance(record, dict):
            continue
        try:
            items.append(from_catalog_record(record))
        except ValueError as exc:
            LOGGER.warning("Skipping catalog entry: %s", exc)
    return items


__all__ = ["ClothingItem", "from_catalog_record", "load_catalog"]
