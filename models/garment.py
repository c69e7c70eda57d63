"""Garment data model and helpers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional
from uuid import uuid4

from models.taxonomy import normalize_category, validate_category


def round_half_away_from_zero(value: float | int | Decimal) -> int:
    """Round to the nearest integer, ties going away from zero.

    ``Decimal`` keeps ``0.5`` and ``-0.5`` exact so the tie rule is applied to
    the value the caller meant rather than its binary approximation.
    """

    try:
        exact = value if isinstance(value, Decimal) else Decimal(str(value))
        return int(exact.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise ValueError(f"Cannot round non-numeric value {value!r}") from exc


def coerce_temperature(value: Any) -> int:
    """Coerce a comfort temperature into an integer degree value."""

    if isinstance(value, bool) or value is None:
        raise ValueError(f"comfort_temperature must be a number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return round_half_away_from_zero(value)
    if isinstance(value, str) and value.strip():
        return round_half_away_from_zero(value.strip())
    raise ValueError(f"comfort_temperature must be a number, got {value!r}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Garment:
    """A single wardrobe item and the temperature it is comfortable at."""

    user_id: str
    name: str
    category: str
    comfort_temperature: int
    image_ref: Optional[str] = None
    garment_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.name = str(self.name or "").strip()
        if not self.name:
            raise ValueError("Garment name cannot be empty")
        if not str(self.user_id or "").strip():
            raise ValueError("Garment user_id cannot be empty")
        self.category = normalize_category(self.category)
        self.comfort_temperature = coerce_temperature(self.comfort_temperature)
        if isinstance(self.created_at, str):
            self.created_at = datetime.fromisoformat(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["created_at"] = self.created_at.isoformat()
        return payload


def from_raw_metadata(metadata: Dict[str, Any]) -> Garment:
    """Factory to build a new :class:`Garment` from loose upload metadata.

    Unlike reading stored rows, new garments must use a known category.
    """

    required_fields = ["user_id", "name", "category"]
    missing = [key for key in required_fields if not metadata.get(key)]
    if metadata.get("comfort_temperature") is None:
        missing.append("comfort_temperature")
    if missing:
        raise ValueError(f"Missing required fields for Garment: {missing}")

    kwargs: Dict[str, Any] = {
        "user_id": str(metadata["user_id"]),
        "name": str(metadata["name"]),
        "category": validate_category(str(metadata["category"])),
        "comfort_temperature": metadata["comfort_temperature"],
        "image_ref": metadata.get("image_ref"),
    }
    if metadata.get("garment_id"):
        kwargs["garment_id"] = str(metadata["garment_id"])
    return Garment(**kwargs)


__all__ = ["Garment", "coerce_temperature", "from_raw_metadata", "round_half_away_from_zero"]
