"""Pydantic schemas for validating request payloads.

Field aliases accept the camelCase names the mobile client already sends
(``userId``, ``clothesIds``, ``temperature``) alongside the snake_case names.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from models.taxonomy import validate_category


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class GarmentCreateRequest(_Request):
    """Upload payload for a new garment."""

    user_id: str = Field(min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    name: str = Field(min_length=1)
    category: str
    comfort_temperature: float = Field(validation_alias=AliasChoices("comfort_temperature", "temperature"))
    image: Optional[str] = None

    @field_validator("category")
    @classmethod
    def _validate_category(cls, value: str) -> str:
        return validate_category(value)


class GarmentUpdateRequest(_Request):
    """Edit payload; only supplied fields change."""

    garment_id: str = Field(min_length=1, validation_alias=AliasChoices("garment_id", "id"))
    user_id: str = Field(min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    comfort_temperature: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("comfort_temperature", "temperature")
    )

    @field_validator("category")
    @classmethod
    def _validate_category(cls, value: Optional[str]) -> Optional[str]:
        return validate_category(value) if value is not None else None

    def changed_fields(self) -> Dict[str, Any]:
        return self.model_dump(include={"name", "category", "comfort_temperature"}, exclude_none=True)


class GarmentDeleteRequest(_Request):
    garment_id: str = Field(min_length=1, validation_alias=AliasChoices("garment_id", "id"))
    user_id: str = Field(min_length=1, validation_alias=AliasChoices("user_id", "userId"))


class RegisterOutfitRequest(_Request):
    """Outfit registration for one calendar day.

    An empty ``garment_ids`` list is accepted here so the domain layer can
    report it as an empty selection rather than a schema error.
    """

    user_id: str = Field(min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    date: dt.date | dt.datetime | str
    garment_ids: List[str] = Field(validation_alias=AliasChoices("garment_ids", "clothesIds"))


class FeedbackRequest(_Request):
    """Post-wear rating for one calendar day; the rating range is checked downstream."""

    user_id: str = Field(min_length=1, validation_alias=AliasChoices("user_id", "userId"))
    date: dt.date | dt.datetime | str
    rating: Any = Field(validation_alias=AliasChoices("rating", "feedback"))


def validation_failure(message: str, errors: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Translate Pydantic errors into the shared error payload."""

    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in errors
    ]
    return {"error": "invalid_request", "message": message, "details": {"errors": details}}


__all__ = [
    "FeedbackRequest",
    "GarmentCreateRequest",
    "GarmentDeleteRequest",
    "GarmentUpdateRequest",
    "RegisterOutfitRequest",
    "validation_failure",
]
