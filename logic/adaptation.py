"""Feedback arithmetic: turn one rating into per-garment temperature nudges.

A rating on the 1-5 scale becomes a signed factor ``(3 - rating) * 0.5``. Each
garment's change is that factor scaled by its category weight and rounded half
away from zero, so at the default weights a single submission moves a garment
by -1, 0 or +1 degrees. Nothing here touches storage.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from models.errors import InvalidRating
from models.garment import Garment, round_half_away_from_zero
from models.outfit import GarmentAdjustment
from models.taxonomy import CategoryWeightTable

RATING_MIN = 1
RATING_MAX = 5
NEUTRAL_RATING = 3
RATING_STEP = Decimal("0.5")

RATING_LABELS = {
    1: "too cold",
    2: "a little cold",
    3: "just right",
    4: "a little hot",
    5: "too hot",
}


def validate_rating(value: Any) -> int:
    """Return the rating as an int or raise :class:`InvalidRating`."""

    if isinstance(value, bool):
        raise InvalidRating(f"Rating must be an integer between {RATING_MIN} and {RATING_MAX}", {"rating": value})
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not RATING_MIN <= value <= RATING_MAX:
        raise InvalidRating(
            f"Rating must be an integer between {RATING_MIN} and {RATING_MAX}",
            {"rating": value, "min": RATING_MIN, "max": RATING_MAX},
        )
    return value


def _factor(rating: int) -> Decimal:
    return (NEUTRAL_RATING - validate_rating(rating)) * RATING_STEP


def adjustment_factor(rating: int) -> float:
    """Signed factor for a rating: +1.0 for "too cold", -1.0 for "too hot"."""

    return float(_factor(rating))


def temperature_delta(factor: float | Decimal, weight: float) -> int:
    """Round ``factor * weight`` half away from zero, computed exactly."""

    product = Decimal(str(factor)) * Decimal(str(weight))
    return round_half_away_from_zero(product)


def plan_adjustment(garment: Garment, rating: int, weights: CategoryWeightTable) -> GarmentAdjustment:
    weight = weights.weight_for(garment.category)
    return GarmentAdjustment(
        garment_id=garment.garment_id,
        category=garment.category,
        weight=weight,
        previous_temperature=garment.comfort_temperature,
        delta=temperature_delta(_factor(rating), weight),
    )


__all__ = [
    "NEUTRAL_RATING",
    "RATING_LABELS",
    "RATING_MAX",
    "RATING_MIN",
    "adjustment_factor",
    "plan_adjustment",
    "round_half_away_from_zero",
    "temperature_delta",
    "validate_rating",
]
