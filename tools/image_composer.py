"""Compose a try-on style image from a person photo and garment photos."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import parse_qs, unquote, urlparse

from PIL import Image, ImageOps

from models.outfit import OutfitPlan

LOGGER = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}
CANVAS_HEIGHT = 768
PERSON_WIDTH = 512
TILE_SIZE = 240
PADDING = 16
BACKGROUND = (240, 240, 240)

GENERATE_OUTFIT_DECLARATION = {
    "name": "generate_outfit_image",
    "description": (
        "Generate a photo of the user wearing the suggested outfit. "
        "Requires a base photo of the user and selected clothing items. "
        "Use after plan_outfit or when the user wants to visualize an outfit."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "basePhotoUrl": {
                "type": "string",
                "description": "URL or path to the user's base photo",
            },
            "outfit": {
                "type": "object",
                "description": "Selected outfit from plan_outfit or search_clothes",
                "properties": {
                    "tops": {"type": "array", "items": {"type": "object"}},
                    "bottoms": {"type": "array", "items": {"type": "object"}},
                    "shoes": {"type": "array", "items": {"type": "object"}},
                    "accessories": {"type": "array", "items": {"type": "object"}},
                    "socks": {"type": "array", "items": {"type": "object"}},
                },
            },
        },
    },
}


@dataclass(frozen=True)
class CompositionResult:
    locator: str
    success: bool
    message: Optional[str] = None

    def to_record(self) -> dict:
        return {"imageUrl": self.locator, "success": self.success, "message": self.message}


class ImageComposer:
    """Renders composites into ``generated/`` under the data directory.

    Every successful call writes a new file; nothing is cached or retried.
    """

    def __init__(
        self,
        data_dir: str | Path = "data",
        person_photos_path: str | Path | None = None,
        person_photo_dir: str | Path | None = None,
        generated_dir: str | Path | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.person_photos_path = Path(person_photos_path or self.data_dir / "person-photos.json")
        self.person_photo_dir = Path(person_photo_dir or self.data_dir / "me")
        self.generated_dir = Path(generated_dir or self.data_dir / "generated")
        self.clock = clock or time.time

    def resolve_locator(self, locator: str | None) -> Optional[Path]:
        """Map an image locator onto a readable file, or ``None``."""

        if not locator or not locator.strip():
            return None
        parsed = urlparse(locator.strip())
        query_path = parse_qs(parsed.query).get("path")
        if query_path:
            candidate = self.data_dir / unquote(query_path[0]).lstrip("/")
        elif parsed.path.startswith("/generated/"):
            candidate = self.generated_dir / Path(parsed.path).name
        else:
            candidate = Path(unquote(parsed.path))
            if not candidate.is_absolute():
                candidate = self.data_dir / candidate
        if not self._is_served(candidate):
            LOGGER.warning("Rejected image locator outside the data directory")
            return None
        return candidate if candidate.is_file() else None

    def _is_served(self, candidate: Path) -> bool:
        # same containment rule as the /api/image route
        resolved = candidate.resolve()
        roots = {self.data_dir, self.person_photo_dir, self.generated_dir}
        return any(resolved.is_relative_to(root.resolve()) for root in roots)

    def default_base_photo(self) -> Optional[Path]:
        """First registered person photo, else the first image found in ``me/``."""

        try:
            registered = json.loads(self.person_photos_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            registered = []
        for record in registered if isinstance(registered, list) else []:
            if not isinstance(record, dict):
                continue
            path = self.resolve_locator(record.get("path")) or self.resolve_locator(record.get("imageUrl"))
            if path:
                return path

        if self.person_photo_dir.is_dir():
            for candidate in sorted(self.person_photo_dir.iterdir()):
                if candidate.suffix.lower() in IMAGE_EXTENSIONS and candidate.is_file():
                    return candidate
        return None

    def compose(self, outfit: OutfitPlan, base_photo: str | None = None) -> CompositionResult:
        base_path = self.resolve_locator(base_photo) if base_photo else None
        if base_photo and base_path is None:
            LOGGER.info("Base photo not found, using default person photo")
        base_path = base_path or self.default_base_photo()
        if base_path is None:
            return CompositionResult(
                locator="",
                success=False,
                message="No base photo found. Add a photo of yourself to data/me/ and index your wardrobe.",
            )

        garment_paths: List[Path] = []
        for item in outfit.items():
            path = self.resolve_locator(item.image_url)
            if path:
                garment_paths.append(path)
        if not garment_paths:
            return CompositionResult(
                locator="", success=False, message="No outfit items with photos to compose."
            )

        try:
            filename = self._render(base_path, garment_paths)
        except OSError as exc:
            LOGGER.warning("Outfit composition failed", exc_info=exc)
            return CompositionResult(locator="", success=False, message=f"Image composition failed: {exc}")

        described = ", ".join(outfit.item_names())
        return CompositionResult(
            locator=f"/generated/{filename}",
            success=True,
            message=f"Outfit image generated: {described}.",
        )

    def _render(self, base_path: Path, garment_paths: List[Path]) -> str:
        rows = max(1, (CANVAS_HEIGHT - PADDING) // (TILE_SIZE + PADDING))
        columns = -(-len(garment_paths) // rows)
        width = PADDING + PERSON_WIDTH + columns * (TILE_SIZE + PADDING) + PADDING
        canvas = Image.new("RGB", (width, CANVAS_HEIGHT), BACKGROUND)

        with Image.open(base_path) as person:
            fitted = ImageOps.contain(person.convert("RGB"), (PERSON_WIDTH, CANVAS_HEIGHT - 2 * PADDING))
            canvas.paste(fitted, (PADDING, (CANVAS_HEIGHT - fitted.height) // 2))

        for index, path in enumerate(garment_paths):
            column, row = divmod(index, rows)
            with Image.open(path) as garment:
                tile = ImageOps.contain(garment.convert("RGB"), (TILE_SIZE, TILE_SIZE))
            x = 2 * PADDING + PERSON_WIDTH + column * (TILE_SIZE + PADDING)
            y = PADDING + row * (TILE_SIZE + PADDING)
            canvas.paste(tile, (x, y))

        self.generated_dir.mkdir(parents=True, exist_ok=True)
        stamp = int(self.clock() * 1000)
        filename = f"outfit-{stamp}.png"
        suffix = 1
        while (self.generated_dir / filename).exists():
            filename = f"outfit-{stamp}-{suffix}.png"
            suffix += 1
        canvas.save(self.generated_dir / filename, format="PNG")
        return filename


__all__ = ["CompositionResult", "GENERATE_OUTFIT_DECLARATION", "ImageComposer"]
