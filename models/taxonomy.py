"""Canonical garment categories and the per-category feedback weights.

Both the suitability grouping and the feedback adaptation read from this
module, so the category order, display labels and weights have exactly one
definition.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_")


CATEGORY_ORDER: List[str] = ["outerwear", "tops", "pants", "skirt", "onepiece", "other"]

CATEGORY_LABELS: Dict[str, str] = {
    "outerwear": "Jackets / Outerwear",
    "tops": "Tops",
    "pants": "Pants",
    "skirt": "Skirts",
    "onepiece": "One-pieces / Dresses",
    "other": "Other",
}

CATEGORY_ALIASES: Dict[str, str] = {
    "outer": "outerwear",
    "jacket": "outerwear",
    "coat": "outerwear",
    "top": "tops",
    "pant": "pants",
    "bottom": "pants",
    "bottoms": "pants",
    "trousers": "pants",
    "skirts": "skirt",
    "one-piece": "onepiece",
    "one_piece": "onepiece",
    "dress": "onepiece",
    "dresses": "onepiece",
    "others": "other",
}

DEFAULT_CATEGORY_WEIGHTS: Dict[str, float] = {
    "outerwear": 1.0,
    "tops": 0.8,
    "pants": 0.6,
    "skirt": 0.6,
    "onepiece": 0.8,
    "other": 0.5,
}
DEFAULT_UNKNOWN_WEIGHT = 0.5


def normalize_category(value: Optional[str]) -> str:
    """Map a raw category onto its canonical key.

    Unknown or legacy values are kept (normalised) rather than rejected so that
    old records remain readable; they simply sort after the known categories.
    """

    if value is None:
        return "other"
    key = _normalize_key(str(value))
    if not key:
        return "other"
    return CATEGORY_ALIASES.get(key, key)


def validate_category(value: str) -> str:
    """Validate and normalise a category value for new or edited garments.

    Raises a :class:`ValueError` if the category is not part of the canonical
    taxonomy.
    """

    key = normalize_category(value)
    if key not in CATEGORY_LABELS:
        raise ValueError(f"Unsupported category '{value}'. Allowed: {CATEGORY_ORDER}")
    return key


def is_known_category(value: str) -> bool:
    return normalize_category(value) in CATEGORY_LABELS


def category_rank(category: str) -> int:
    """Priority of a category for display; unknown categories rank last."""

    key = normalize_category(category)
    if key in CATEGORY_LABELS:
        return CATEGORY_ORDER.index(key)
    return len(CATEGORY_ORDER)


def category_label(category: str) -> str:
    key = normalize_category(category)
    return CATEGORY_LABELS.get(key, str(category))


def _check_weight(category: str, weight: float) -> float:
    value = float(weight)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"Weight for '{category}' must be within [0, 1], got {weight}")
    return value


class CategoryWeightTable:
    """Read-only category to weight mapping used by feedback adaptation."""

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        default_weight: float = DEFAULT_UNKNOWN_WEIGHT,
    ) -> None:
        source = DEFAULT_CATEGORY_WEIGHTS if weights is None else weights
        checked = {normalize_category(key): _check_weight(key, value) for key, value in source.items()}
        self._weights: Mapping[str, float] = MappingProxyType(checked)
        self.default_weight = _check_weight("<default>", default_weight)

    @property
    def weights(self) -> Mapping[str, float]:
        return self._weights

    def weight_for(self, category: Optional[str]) -> float:
        return self._weights.get(normalize_category(category), self.default_weight)

    def with_overrides(self, overrides: Mapping[str, float]) -> "CategoryWeightTable":
        merged = dict(self._weights)
        for key, value in overrides.items():
            merged[normalize_category(key)] = value
        return CategoryWeightTable(merged, default_weight=self.default_weight)

    def __repr__(self) -> str:
        return f"CategoryWeightTable({dict(self._weights)!r}, default_weight={self.default_weight})"


def parse_weight_overrides(raw: Optional[str]) -> Dict[str, float]:
    """Parse ``"outerwear=0.9, tops=0.7"`` into a mapping."""

    overrides: Dict[str, float] = {}
    if not raw:
        return overrides
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        if "=" not in chunk:
            raise ValueError(f"Invalid category weight entry '{chunk}', expected category=weight")
        key, value = chunk.split("=", 1)
        try:
            overrides[normalize_category(key)] = float(value)
        except ValueError as exc:
            raise ValueError(f"Invalid weight '{value.strip()}' for category '{key.strip()}'") from exc
    return overrides


def ordered_categories(categories: Iterable[str]) -> List[str]:
    """Known categories in priority order, then unknown ones in encounter order."""

    seen: List[str] = []
    for category in categories:
        key = normalize_category(category)
        if key not in seen:
            seen.append(key)
    known = [key for key in CATEGORY_ORDER if key in seen]
    unknown = [key for key in seen if key not in CATEGORY_LABELS]
    return known + unknown


__all__ = [
    "CATEGORY_ORDER",
    "CATEGORY_LABELS",
    "CATEGORY_ALIASES",
    "DEFAULT_CATEGORY_WEIGHTS",
    "DEFAULT_UNKNOWN_WEIGHT",
    "CategoryWeightTable",
    "category_label",
    "category_rank",
    "is_known_category",
    "normalize_category",
    "ordered_categories",
    "parse_weight_overrides",
    "validate_category",
]
