"""Pydantic schemas for validating tool arguments supplied by the model."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class SearchClothesInput(BaseModel):
    """Arguments accepted by ``search_clothes``."""

    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    color: Optional[str] = None
    category: Optional[str] = None
    occasion: Optional[str] = None
    limit: int = Field(default=10, ge=0)

    @field_validator("limit", mode="before")
    @classmethod
    def _coerce_limit(cls, value: Any) -> Any:
        # the model sends JSON numbers, which arrive as floats
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if value is None:
            return 10
        return value


class PlanOutfitInput(BaseModel):
    """Arguments accepted by ``plan_outfit``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    occasion: Optional[str] = None
    weather_context: Optional[str] = Field(default=None, alias="weatherContext")
    exclude_worn_this_week: bool = Field(default=False, alias="excludeWornThisWeek")


class OutfitArgument(BaseModel):
    """Outfit shape the model passes back; each slot is a list of catalog records."""

    model_config = ConfigDict(extra="ignore")

    tops: List[Dict[str, Any]] = Field(default_factory=list)
    bottoms: List[Dict[str, Any]] = Field(default_factory=list)
    shoes: List[Dict[str, Any]] = Field(default_factory=list)
    socks: List[Dict[str, Any]] = Field(default_factory=list)
    accessories: List[Dict[str, Any]] = Field(default_factory=list)
    reason: Optional[str] = None

    @field_validator("tops", "bottoms", "shoes", "socks", "accessories", mode="before")
    @classmethod
    def _null_slot_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class GenerateOutfitInput(BaseModel):
    """Arguments accepted by ``generate_outfit_image``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    base_photo_url: Optional[str] = Field(default=None, alias="basePhotoUrl")
    outfit: Optional[OutfitArgument] = None


class ValidationResult(BaseModel):
    """Structured error fed back to the model when arguments do not validate."""

    status: str = "invalid_arguments"
    error: str
    details: List[Dict[str, Any]]


def validation_failure(message: str, exc: ValidationError) -> Dict[str, Any]:
    """Translate Pydantic errors into a payload the model can read."""

    details = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return ValidationResult(error=message, details=details).model_dump()


__all__ = [
    "GenerateOutfitInput",
    "OutfitArgument",
    "PlanOutfitInput",
    "SearchClothesInput",
    "ValidationResult",
    "validation_failure",
]
