"""Error taxonomy shared by stores, agents and the HTTP layer.

Validation errors (``InvalidReference``, ``EmptySelection``, ``InvalidRating``,
``DuplicateFeedback``) are always raised before anything is written, so a
caller that sees one knows nothing happened. ``PersistenceFailure`` and
``WeatherUnavailable`` wrap collaborator I/O problems and are safe to retry.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ClosetError(Exception):
    """Base class for domain errors carrying a stable code and details."""

    code = "closet_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class InvalidReference(ClosetError, ValueError):
    """A garment id does not exist or belongs to another owner."""

    code = "invalid_reference"


class EmptySelection(ClosetError, ValueError):
    """An outfit registration without any garments."""

    code = "empty_selection"


class InvalidRating(ClosetError, ValueError):
    """A feedback rating outside the 1-5 scale."""

    code = "invalid_rating"


class DuplicateFeedback(ClosetError, ValueError):
    """Feedback already recorded for the day under the once-per-day policy."""

    code = "duplicate_feedback"


class NotFound(ClosetError, LookupError):
    """A garment or outfit session lookup miss."""

    code = "not_found"


class NoOutfitForDate(NotFound):
    """Feedback arrived for a day without a registered outfit."""

    code = "no_outfit_for_date"


class PersistenceFailure(ClosetError, RuntimeError):
    """A storage collaborator failed or timed out."""

    code = "persistence_failure"


class WeatherUnavailable(ClosetError, RuntimeError):
    """The weather collaborator could not produce a reading."""

    code = "weather_unavailable"


__all__ = [
    "ClosetError",
    "InvalidReference",
    "EmptySelection",
    "InvalidRating",
    "DuplicateFeedback",
    "NotFound",
    "NoOutfitForDate",
    "PersistenceFailure",
    "WeatherUnavailable",
]
