"""Outfit sessions, feedback records and adjustment results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OutfitSession:
    """The garments one owner selected to wear on one calendar day."""

    user_id: str
    date: date
    garment_ids: List[str]
    session_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "garment_ids": list(self.garment_ids),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Feedback:
    """A post-wear rating; 1 means too cold, 5 too hot and 3 just right."""

    user_id: str
    date: date
    rating: int
    feedback_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class GarmentAdjustment:
    garment_id: str
    category: str
    weight: float
    previous_temperature: int
    delta: int

    @property
    def new_temperature(self) -> int:
        return self.previous_temperature + self.delta

    def to_dict(self) -> Dict[str, Any]:
        return {
            "garment_id": self.garment_id,
            "category": self.category,
            "weight": self.weight,
            "previous_temperature": self.previous_temperature,
            "delta": self.delta,
            "new_temperature": self.new_temperature,
        }


@dataclass
class AdjustmentResult:
    """Outcome of one feedback submission.

    ``updated`` garments had their new temperature stored, ``skipped`` ones no
    longer exist and ``failed`` maps ids to the storage error that stopped them.
    """

    user_id: str
    date: date
    rating: int
    adjustment_factor: float
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    adjustments: List[GarmentAdjustment] = field(default_factory=list)

    @property
    def status(self) -> str:
        if not self.failed:
            return "ok"
        if self.updated:
            return "partial"
        return "failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "date": self.date.isoformat(),
            "rating": self.rating,
            "adjustment_factor": self.adjustment_factor,
            "updated": list(self.updated),
            "skipped": list(self.skipped),
            "failed": dict(self.failed),
            "adjustments": [adjustment.to_dict() for adjustment in self.adjustments],
        }


__all__ = ["AdjustmentResult", "Feedback", "GarmentAdjustment", "OutfitSession"]
