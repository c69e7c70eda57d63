"""Evaluation scenarios replaying repeated feedback against a small wardrobe."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List


@dataclass
class ConvergenceScenario:
    name: str
    description: str
    start_date: date
    garments: List[Dict[str, object]]
    ratings: List[int]
    expectations: Dict[str, object]


SCENARIOS: List[ConvergenceScenario] = [
    ConvergenceScenario(
        name="cold_commuter",
        description="Wool coat rated too cold on four consecutive mornings.",
        start_date=date(2024, 1, 8),
        garments=[{"name": "Wool coat", "category": "outerwear", "comfort_temperature": 10}],
        ratings=[1, 1, 1, 1],
        expectations={"final_temperatures": {"Wool coat": 14}},
    ),
    ConvergenceScenario(
        name="overheated_office",
        description="Knit vest rated too warm three days running.",
        start_date=date(2024, 6, 3),
        garments=[{"name": "Knit vest", "category": "other", "comfort_temperature": 20}],
        ratings=[5, 5, 5],
        expectations={"final_temperatures": {"Knit vest": 17}},
    ),
    ConvergenceScenario(
        name="mild_complaints",
        description="Slightly cool ratings on a shirt stay below the rounding threshold.",
        start_date=date(2024, 4, 15),
        garments=[{"name": "Linen shirt", "category": "tops", "comfort_temperature": 15}],
        ratings=[2, 2, 2],
        expectations={"final_temperatures": {"Linen shirt": 15}},
    ),
    ConvergenceScenario(
        name="comfortable_streak",
        description="Neutral ratings never move the comfort temperature.",
        start_date=date(2024, 9, 2),
        garments=[{"name": "Chinos", "category": "pants", "comfort_temperature": 18}],
        ratings=[3, 3, 3],
        expectations={"final_temperatures": {"Chinos": 18}},
    ),
    ConvergenceScenario(
        name="layered_winter",
        description="A coat and a sweater worn together on freezing days.",
        start_date=date(2024, 12, 9),
        garments=[
            {"name": "Parka", "category": "outerwear", "comfort_temperature": 8},
            {"name": "Sweater", "category": "tops", "comfort_temperature": 8},
            {"name": "Jeans", "category": "pants", "comfort_temperature": 8},
        ],
        ratings=[1, 1, 1],
        expectations={"final_temperatures": {"Parka": 11, "Sweater": 11, "Jeans": 11}},
    ),
]


__all__ = ["ConvergenceScenario", "SCENARIOS"]
