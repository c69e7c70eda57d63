"""Outfit session registration, replacement and lookup."""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict

import pytest

from memory.locks import KeyedLocks
from memory.outfit_sessions import (
    JSONOutfitSessionStore,
    OutfitSessionManager,
    SQLiteOutfitSessionStore,
    dedupe_ids,
)
from models.errors import EmptySelection, InvalidReference, NotFound, PersistenceFailure
from models.garment import Garment
from tools.garment_store import SQLiteGarmentStore


def _seed(store: SQLiteGarmentStore, user_id: str = "owner-1") -> Dict[str, str]:
    ids = {}
    for name, category, temperature in (
        ("Parka", "outerwear", 5),
        ("Sweater", "tops", 10),
        ("Jeans", "pants", 12),
    ):
        garment = store.create_garment(
            Garment(user_id=user_id, name=name, category=category, comfort_temperature=temperature)
        )
        ids[name] = garment.garment_id
    return ids


@pytest.fixture(params=["sqlite", "json"])
def manager(request: pytest.FixtureRequest, tmp_path: Path) -> OutfitSessionManager:
    garment_store = SQLiteGarmentStore(tmp_path / "closet.db")
    if request.param == "json":
        session_store = JSONOutfitSessionStore(tmp_path / "outfits")
    else:
        session_store = SQLiteOutfitSessionStore(tmp_path / "closet.db")
    return OutfitSessionManager(store=session_store, garment_store=garment_store)


def test_register_then_fetch_roundtrip(manager: OutfitSessionManager) -> None:
    ids = _seed(manager.garment_store)

    session = manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"], ids["Jeans"]])
    fetched = manager.get_session("owner-1", date(2024, 5, 1))

    assert fetched.session_id == session.session_id
    assert fetched.garment_ids == [ids["Parka"], ids["Jeans"]]
    assert fetched.date == date(2024, 5, 1)


def test_registering_twice_for_a_day_replaces_garments(manager: OutfitSessionManager) -> None:
    ids = _seed(manager.garment_store)

    first = manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"], ids["Sweater"]])
    second = manager.register_outfit("owner-1", "2024-05-01T18:30:00", [ids["Jeans"]])

    assert second.session_id == first.session_id
    assert manager.get_session("owner-1", "2024-05-01").garment_ids == [ids["Jeans"]]
    assert len(manager.history("owner-1")) == 1


def test_identical_registration_is_idempotent(manager: OutfitSessionManager) -> None:
    ids = _seed(manager.garment_store)
    selection = [ids["Parka"], ids["Sweater"]]

    manager.register_outfit("owner-1", "2024-05-01", selection)
    manager.register_outfit("owner-1", "2024-05-01", selection)

    assert manager.get_session("owner-1", "2024-05-01").garment_ids == selection
    assert len(manager.history("owner-1")) == 1


def test_empty_selection_is_rejected(manager: OutfitSessionManager) -> None:
    with pytest.raises(EmptySelection):
        manager.register_outfit("owner-1", "2024-05-01", [])
    assert manager.find_session("owner-1", "2024-05-01") is None


def test_foreign_or_unknown_ids_leave_existing_session_untouched(manager: OutfitSessionManager) -> None:
    ids = _seed(manager.garment_store)
    other_ids = _seed(manager.garment_store, user_id="owner-2")
    manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"]])

    with pytest.raises(InvalidReference) as excinfo:
        manager.register_outfit("owner-1", "2024-05-01", [ids["Jeans"], other_ids["Parka"], "missing"])

    assert excinfo.value.details["garment_ids"] == [other_ids["Parka"], "missing"]
    assert manager.get_session("owner-1", "2024-05-01").garment_ids == [ids["Parka"]]


def test_duplicate_ids_collapse_to_first_occurrence(manager: OutfitSessionManager) -> None:
    ids = _seed(manager.garment_store)
    session = manager.register_outfit("owner-1", "2024-05-01", [ids["Jeans"], ids["Parka"], ids["Jeans"]])
    assert session.garment_ids == [ids["Jeans"], ids["Parka"]]
    assert dedupe_ids(["a", "b", "a", "c", "b"]) == ["a", "b", "c"]


def test_sessions_are_scoped_per_owner_and_day(manager: OutfitSessionManager) -> None:
    ids = _seed(manager.garment_store)
    other_ids = _seed(manager.garment_store, user_id="owner-2")
    manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"]])
    manager.register_outfit("owner-1", "2024-05-02", [ids["Sweater"]])
    manager.register_outfit("owner-2", "2024-05-01", [other_ids["Jeans"]])

    assert manager.get_session("owner-1", "2024-05-02").garment_ids == [ids["Sweater"]]
    assert manager.get_session("owner-2", "2024-05-01").garment_ids == [other_ids["Jeans"]]
    with pytest.raises(NotFound):
        manager.get_session("owner-2", "2024-05-02")


def test_history_filters_by_range(manager: OutfitSessionManager) -> None:
    ids = _seed(manager.garment_store)
    for day in ("2024-05-01", "2024-05-03", "2024-05-05"):
        manager.register_outfit("owner-1", day, [ids["Parka"]])

    window = manager.history("owner-1", start="2024-05-02", end="2024-05-05")
    assert [session.date for session in window] == [date(2024, 5, 3), date(2024, 5, 5)]
    with pytest.raises(ValueError):
        manager.history("owner-1", start="2024-05-05", end="2024-05-01")


def test_calendar_day_uses_configured_timezone(tmp_path: Path) -> None:
    garment_store = SQLiteGarmentStore(tmp_path / "closet.db")
    manager = OutfitSessionManager(
        store=SQLiteOutfitSessionStore(tmp_path / "closet.db"),
        garment_store=garment_store,
        timezone_name="Asia/Tokyo",
    )
    ids = _seed(garment_store)

    manager.register_outfit("owner-1", datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc), [ids["Parka"]])

    assert manager.find_session("owner-1", "2024-05-02") is not None
    assert manager.find_session("owner-1", "2024-05-01") is None


def test_register_times_out_when_the_day_is_locked(tmp_path: Path) -> None:
    garment_store = SQLiteGarmentStore(tmp_path / "closet.db")
    locks = KeyedLocks(timeout_seconds=0.05)
    manager = OutfitSessionManager(
        store=SQLiteOutfitSessionStore(tmp_path / "closet.db"),
        garment_store=garment_store,
        locks=locks,
    )
    ids = _seed(garment_store)

    with locks.hold(("outfit", "owner-1", date(2024, 5, 1))):
        with pytest.raises(PersistenceFailure):
            manager.register_outfit("owner-1", "2024-05-01", [ids["Parka"]])
    assert manager.find_session("owner-1", "2024-05-01") is None


def test_json_store_keeps_similar_owner_ids_apart(tmp_path: Path) -> None:
    garment_store = SQLiteGarmentStore(tmp_path / "closet.db")
    manager = OutfitSessionManager(store=JSONOutfitSessionStore(tmp_path / "outfits"), garment_store=garment_store)
    dotted = _seed(garment_store, user_id="a.b")
    plain = _seed(garment_store, user_id="ab")

    manager.register_outfit("a.b", "2024-05-01", [dotted["Parka"]])
    assert manager.find_session("ab", "2024-05-01") is None

    manager.register_outfit("ab", "2024-05-01", [plain["Jeans"]])
    assert manager.get_session("a.b", "2024-05-01").garment_ids == [dotted["Parka"]]
    assert manager.get_session("ab", "2024-05-01").garment_ids == [plain["Jeans"]]
    assert len(list((tmp_path / "outfits").glob("*.json"))) == 2


def test_json_store_ignores_records_of_other_owners(tmp_path: Path) -> None:
    store = JSONOutfitSessionStore(tmp_path / "outfits")
    garment_store = SQLiteGarmentStore(tmp_path / "closet.db")
    manager = OutfitSessionManager(store=store, garment_store=garment_store)
    ids = _seed(garment_store, user_id="owner-2")
    manager.register_outfit("owner-2", "2024-05-01", [ids["Sweater"]])

    store._path("owner-1").write_text(store._path("owner-2").read_text())

    assert store.get("owner-1", date(2024, 5, 1)) is None
    assert store.list_for_user("owner-1") == []
