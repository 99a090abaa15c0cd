"""In-memory search over the wardrobe catalog snapshot."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from models.clothing_item import ClothingItem

DEFAULT_LIMIT = 10

SEARCH_CLOTHES_DECLARATION = {
    "name": "search_clothes",
    "description": (
        "Search the clothing catalog by query, color, category, or occasion. "
        "Use when the user wants to find specific clothes, browse the wardrobe, "
        "or when planning an outfit."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Free text search (name, style, tags)"},
            "color": {"type": "string", "description": "Filter by color (e.g. blue, black, white)"},
            "category": {
                "type": "string",
                "description": "Filter by category: top, bottom, dress, outerwear, shoes, accessory, socks, bag",
            },
            "occasion": {
                "type": "string",
                "description": "Filter by occasion: casual, formal, business, athletic, party, beach, evening",
            },
            "limit": {"type": "integer", "description": "Max results (default 10)"},
        },
    },
}


def _normalised(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip().lower()
    return cleaned or None


def _any_contains(values: Iterable[str], needle: str) -> bool:
    return any(needle in value.lower() for value in values)


def _matches_query(item: ClothingItem, query: str) -> bool:
    return (
        query in item.name.lower()
        or query in item.primary_color.lower()
        or _any_contains(item.colors, query)
        or _any_contains(item.occasions, query)
        or _any_contains(item.style, query)
        or _any_contains(item.tags, query)
    )


def search_clothes(
    catalog: Sequence[ClothingItem],
    query: Optional[str] = None,
    color: Optional[str] = None,
    category: Optional[str] = None,
    occasion: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[ClothingItem]:
    """Filter ``catalog`` keeping catalog order.

    Every non-blank filter must match (case-insensitive). ``query`` is a
    substring test across name, colors, occasions, style and tags; ``color``
    checks the primary and secondary colors; ``category`` is an exact label
    match; ``occasion`` is a substring test over the item's occasions.
    """

    q = _normalised(query)
    c = _normalised(color)
    cat = _normalised(category)
    occ = _normalised(occasion)

    results: List[ClothingItem] = []
    for item in catalog:
        if q and not _matches_query(item, q):
            continue
        if c and not (c in item.primary_color.lower() or _any_contains(item.colors, c)):
            continue
        if cat and item.category.lower() != cat:
            continue
        if occ and not _any_contains(item.occasions, occ):
            continue
        results.append(item)
    return results[: max(limit, 0)]


__all__ = ["DEFAULT_LIMIT", "SEARCH_CLOTHES_DECLARATION", "search_clothes"]
