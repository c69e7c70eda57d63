"""Deterministic temperature suitability filtering and category grouping."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from closet_app.config import DEFAULT_TOLERANCE_DEGREES
from models.garment import Garment
from models.taxonomy import category_label, normalize_category, ordered_categories


@dataclass(frozen=True)
class CategoryGroup:
    """Garments of one category, in the order they were selected."""

    category: str
    label: str
    garments: List[Garment]


@dataclass(frozen=True)
class CandidateSelection:
    """Captures the outcome of one suitability pass."""

    target_temperature: int
    tolerance_degrees: int
    candidates: List[Garment]
    groups: List[CategoryGroup]
    debug: Dict[str, object] = field(default_factory=dict)


def is_suitable(garment: Garment, target_temperature: int, tolerance_degrees: int) -> bool:
    if garment.comfort_temperature is None:
        return False
    return abs(garment.comfort_temperature - target_temperature) <= tolerance_degrees


def select_candidates(
    garments: Iterable[Garment],
    target_temperature: Optional[int],
    tolerance_degrees: int = DEFAULT_TOLERANCE_DEGREES,
) -> List[Garment]:
    """Return every garment comfortable within ``tolerance_degrees`` of the target.

    Input order is preserved. A missing target is an error: callers without a
    temperature must skip filtering instead of matching everything.
    """

    if target_temperature is None:
        raise ValueError("target_temperature is required for suitability filtering")
    if tolerance_degrees is None or tolerance_degrees < 0:
        raise ValueError("tolerance_degrees must be a non-negative number")
    return [garment for garment in garments if is_suitable(garment, target_temperature, tolerance_degrees)]


def group_by_category(garments: Iterable[Garment]) -> List[CategoryGroup]:
    """Partition garments by category in display priority order.

    Unknown categories follow the known ones in the order first seen; empty
    categories never appear.
    """

    buckets: Dict[str, List[Garment]] = {}
    for garment in garments:
        buckets.setdefault(normalize_category(garment.category), []).append(garment)

    return [
        CategoryGroup(category=category, label=category_label(category), garments=buckets[category])
        for category in ordered_categories(buckets.keys())
    ]


def build_selection(
    garments: Iterable[Garment],
    target_temperature: int,
    tolerance_degrees: int = DEFAULT_TOLERANCE_DEGREES,
) -> CandidateSelection:
    pool = list(garments)
    candidates = select_candidates(pool, target_temperature, tolerance_degrees)
    groups = group_by_category(candidates)
    debug = {
        "input_count": len(pool),
        "kept_count": len(candidates),
        "removed_count": len(pool) - len(candidates),
        "window": [target_temperature - tolerance_degrees, target_temperature + tolerance_degrees],
        "categories": [group.category for group in groups],
    }
    return CandidateSelection(
        target_temperature=target_temperature,
        tolerance_degrees=tolerance_degrees,
        candidates=candidates,
        groups=groups,
        debug=debug,
    )


__all__ = [
    "CandidateSelection",
    "CategoryGroup",
    "build_selection",
    "group_by_category",
    "is_suitable",
    "select_candidates",
]
