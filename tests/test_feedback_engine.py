"""Feedback adaptation against real SQLite stores."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Dict, Optional

import pytest

from agents.feedback_engine import FeedbackEngine
from memory.feedback_log import SQLiteFeedbackLog
from memory.outfit_sessions import OutfitSessionManager, SQLiteOutfitSessionStore
from models.errors import DuplicateFeedback, InvalidRating, NoOutfitForDate, NotFound, PersistenceFailure
from models.garment import Garment
from models.taxonomy import CategoryWeightTable
from tools.garment_store import SQLiteGarmentStore


class _FlakyGarmentStore(SQLiteGarmentStore):
    """Fails writes for one garment id to exercise partial results."""

    def __init__(self, *args, failing_id: Optional[str] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.failing_id = failing_id

    def adjust_comfort_temperature(self, user_id: str, garment_id: str, delta: int) -> Optional[Garment]:
        if garment_id == self.failing_id:
            raise PersistenceFailure("disk unavailable", {"garment_id": garment_id})
        return super().adjust_comfort_temperature(user_id, garment_id, delta)


def _build_engine(tmp_path: Path, store: SQLiteGarmentStore | None = None, **kwargs) -> FeedbackEngine:
    garment_store = store or SQLiteGarmentStore(tmp_path / "closet.db")
    manager = OutfitSessionManager(
        store=SQLiteOutfitSessionStore(tmp_path / "closet.db"),
        garment_store=garment_store,
    )
    return FeedbackEngine(
        session_manager=manager,
        garment_store=garment_store,
        feedback_log=SQLiteFeedbackLog(tmp_path / "closet.db"),
        **kwargs,
    )


def _seed(engine: FeedbackEngine) -> Dict[str, str]:
    ids = {}
    for name, category, temperature in (
        ("Parka", "outerwear", 15),
        ("Sweater", "tops", 15),
        ("Beanie", "other", 20),
    ):
        stored = engine.garment_store.create_garment(
            Garment(user_id="owner-1", name=name, category=category, comfort_temperature=temperature)
        )
        ids[name] = stored.garment_id
    return ids


def _temperature(engine: FeedbackEngine, garment_id: str) -> int:
    garment = engine.garment_store.get_garment("owner-1", garment_id)
    assert garment is not None
    return garment.comfort_temperature


def test_too_cold_feedback_warms_every_worn_garment(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path)
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"], ids["Sweater"]])

    result = engine.apply_feedback("owner-1", "2024-05-01", 1)

    assert result.status == "ok"
    assert result.adjustment_factor == 1.0
    assert sorted(result.updated) == sorted([ids["Parka"], ids["Sweater"]])
    assert _temperature(engine, ids["Parka"]) == 16
    assert _temperature(engine, ids["Sweater"]) == 16
    assert _temperature(engine, ids["Beanie"]) == 20


def test_too_hot_on_other_category_cools_by_one(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path)
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Beanie"]])

    result = engine.apply_feedback("owner-1", date(2024, 5, 1), 5)

    assert _temperature(engine, ids["Beanie"]) == 19
    assert result.adjustments[0].previous_temperature == 20
    assert result.adjustments[0].new_temperature == 19


def test_neutral_feedback_is_recorded_without_changes(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path)
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", list(ids.values()))

    result = engine.apply_feedback("owner-1", "2024-05-01", 3)

    assert result.status == "ok"
    assert len(result.updated) == 3
    assert all(adjustment.delta == 0 for adjustment in result.adjustments)
    assert _temperature(engine, ids["Parka"]) == 15
    assert engine.feedback_log.count_for_day("owner-1", date(2024, 5, 1)) == 1


def test_feedback_without_outfit_changes_nothing(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path)
    ids = _seed(engine)

    with pytest.raises(NoOutfitForDate) as excinfo:
        engine.apply_feedback("owner-1", "2024-05-01", 1)

    assert isinstance(excinfo.value, NotFound)
    assert _temperature(engine, ids["Parka"]) == 15
    assert engine.feedback_log.count_for_day("owner-1", date(2024, 5, 1)) == 0


def test_invalid_rating_is_rejected_before_any_change(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path)
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"]])

    with pytest.raises(InvalidRating):
        engine.apply_feedback("owner-1", "2024-05-01", 7)

    assert _temperature(engine, ids["Parka"]) == 15
    assert engine.feedback_log.list_for_user("owner-1") == []


def test_deleted_garments_are_skipped(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path)
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"], ids["Sweater"]])
    engine.garment_store.delete_garment("owner-1", ids["Sweater"])

    result = engine.apply_feedback("owner-1", "2024-05-01", 1)

    assert result.status == "ok"
    assert result.updated == [ids["Parka"]]
    assert result.skipped == [ids["Sweater"]]
    assert engine.session_manager.get_session("owner-1", "2024-05-01").garment_ids == [
        ids["Parka"],
        ids["Sweater"],
    ]


def test_storage_failure_on_one_garment_reports_partial_result(tmp_path: Path) -> None:
    store = _FlakyGarmentStore(tmp_path / "closet.db")
    engine = _build_engine(tmp_path, store=store)
    ids = _seed(engine)
    store.failing_id = ids["Sweater"]
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"], ids["Sweater"]])

    result = engine.apply_feedback("owner-1", "2024-05-01", 1)

    assert result.status == "partial"
    assert result.updated == [ids["Parka"]]
    assert result.failed == {ids["Sweater"]: "disk unavailable"}
    assert _temperature(engine, ids["Parka"]) == 16
    assert _temperature(engine, ids["Sweater"]) == 15
    assert result.to_dict()["status"] == "partial"


def test_repeated_feedback_accumulates_by_default(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path)
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"]])

    engine.apply_feedback("owner-1", "2024-05-01", 1)
    engine.apply_feedback("owner-1", "2024-05-01", 1)

    assert _temperature(engine, ids["Parka"]) == 17
    assert engine.feedback_log.count_for_day("owner-1", date(2024, 5, 1)) == 2


def test_once_per_day_policy_rejects_second_submission(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path, policy="once_per_day")
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"]])

    engine.apply_feedback("owner-1", "2024-05-01", 1)
    with pytest.raises(DuplicateFeedback):
        engine.apply_feedback("owner-1", "2024-05-01T20:00:00", 1)

    assert _temperature(engine, ids["Parka"]) == 16


def test_custom_weights_change_the_step(tmp_path: Path) -> None:
    engine = _build_engine(tmp_path, weights=CategoryWeightTable().with_overrides({"tops": 0.4}))
    ids = _seed(engine)
    engine.session_manager.register_outfit("owner-1", "2024-05-01", [ids["Sweater"]])

    engine.apply_feedback("owner-1", "2024-05-01", 1)

    assert _temperature(engine, ids["Sweater"]) == 15


def test_unknown_policy_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        _build_engine(tmp_path, policy="sometimes")
