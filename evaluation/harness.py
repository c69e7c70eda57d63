"""Lightweight evaluation harness for deterministic feedback scenarios."""

from __future__ import annotations

from datetime import timedelta
from tempfile import TemporaryDirectory
from typing import Dict, List

from closet_app.app import ClosetComfortApp
from evaluation.scenarios import SCENARIOS, ConvergenceScenario
from tools.weather_provider import MockWeatherProvider


def _is_monotone(trajectory: List[int]) -> bool:
    steps = [after - before for before, after in zip(trajectory, trajectory[1:])]
    return all(step >= 0 for step in steps) or all(step <= 0 for step in steps)


def _evaluate_expectations(
    expectations: Dict[str, object], trajectories: Dict[str, List[int]]
) -> Dict[str, bool]:
    checks: Dict[str, bool] = {}
    checks["bounded_steps"] = all(
        abs(after - before) <= 1
        for trajectory in trajectories.values()
        for before, after in zip(trajectory, trajectory[1:])
    )
    checks["monotone"] = all(_is_monotone(trajectory) for trajectory in trajectories.values())
    final_temperatures = expectations.get("final_temperatures") or {}
    checks["final_temperatures"] = all(
        trajectories[name][-1] == expected for name, expected in final_temperatures.items()
    )
    return checks


def run_scenario(scenario: ConvergenceScenario, user_id: str = "eval_user") -> Dict[str, object]:
    with TemporaryDirectory() as tmpdir:
        app = ClosetComfortApp.for_directory(tmpdir, weather_provider=MockWeatherProvider())
        ids_by_name: Dict[str, str] = {}
        trajectories: Dict[str, List[int]] = {}
        for garment in scenario.garments:
            stored = app.garment_tools.add_garment(user_id, dict(garment))
            ids_by_name[str(garment["name"])] = stored["garment_id"]
            trajectories[str(garment["name"])] = [stored["comfort_temperature"]]

        for offset, rating in enumerate(scenario.ratings):
            day = scenario.start_date + timedelta(days=offset)
            app.register_outfit(user_id=user_id, date=day, garment_ids=list(ids_by_name.values()))
            app.apply_feedback(user_id=user_id, date=day, rating=rating)
            for name, garment_id in ids_by_name.items():
                trajectories[name].append(app.garment_tools.get_garment(user_id, garment_id)["comfort_temperature"])

        checks = _evaluate_expectations(scenario.expectations, trajectories)
        return {
            "scenario": scenario.name,
            "passed": all(checks.values()),
            "checks": checks,
            "trajectories": trajectories,
        }


def run_evaluation_suite() -> List[Dict[str, object]]:
    return [run_scenario(scenario) for scenario in SCENARIOS]


def run_smoke_checks() -> List[str]:
    results = run_evaluation_suite()
    return [f"{result['scenario']}: {'passed' if result['passed'] else 'failed'}" for result in results]


__all__ = ["run_evaluation_suite", "run_scenario", "run_smoke_checks"]
