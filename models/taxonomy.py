"""Canonical labels for catalog categories and occasions.

The catalog is produced by a separate indexing run, so values arriving here are
normalised rather than trusted: labels are lower-cased and trimmed. An unknown
category rejects the garment; an unknown occasion label is only dropped.
"""

import logging
from enum import Enum
from typing import Iterable, List

LOGGER = logging.getLogger(__name__)


class Category(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    DRESS = "dress"
    OUTERWEAR = "outerwear"
    SHOES = "shoes"
    ACCESSORY = "accessory"
    SOCKS = "socks"
    BAG = "bag"


class Occasion(str, Enum):
    CASUAL = "casual"
    FORMAL = "formal"
    BUSINESS = "business"
    ATHLETIC = "athletic"
    PARTY = "party"
    BEACH = "beach"
    EVENING = "evening"


CATEGORIES: List[str] = [category.value for category in Category]
OCCASIONS: List[str] = [occasion.value for occasion in Occasion]
DEFAULT_OCCASION = Occasion.CASUAL.value


def _normalize_key(value: str) -> str:
    return str(value).strip().lower()


def validate_category(category: str) -> str:
    """Return the canonical category label or raise ``ValueError``."""

    key = _normalize_key(category)
    if key not in CATEGORIES:
        raise ValueError(f"Unknown category '{category}'. Expected one of {CATEGORIES}.")
    return key


def normalise_occasions(values: Iterable[str]) -> List[str]:
    """Lower-case and deduplicate occasion labels, keeping order.

    Labels outside the vocabulary are dropped with a warning rather than
    failing the whole garment.
    """

    normalised: List[str] = []
    for value in values:
        key = _normalize_key(value)
        if not key:
            continue
        if key not in OCCASIONS:
            LOGGER.warning("Dropping unknown occasion label %r", value)
            continue
        if key not in normalised:
            normalised.append(key)
    return normalised


__all__ = [
    "Category",
    "Occasion",
    "CATEGORIES",
    "OCCASIONS",
    "DEFAULT_OCCASION",
    "validate_category",
    "normalise_occasions",
]
