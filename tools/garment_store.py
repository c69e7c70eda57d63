"""Garment storage abstractions and SQLite implementation."""
from __future__ import annotations

import sqlite3
from contextlib import closing, contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Set

from memory.locks import KeyedLocks
from models.errors import InvalidReference, PersistenceFailure
from models.garment import Garment, coerce_temperature
from models.taxonomy import category_rank, normalize_category, validate_category

_IMMUTABLE_FIELDS = {"garment_id", "user_id", "created_at"}


class GarmentStore:
    """Persistence interface for garments.

    Every call is scoped to one owner; a garment owned by someone else is
    indistinguishable from a missing one.
    """

    def create_garment(self, garment: Garment) -> Garment:
        raise NotImplementedError

    def get_garment(self, user_id: str, garment_id: str) -> Optional[Garment]:
        raise NotImplementedError

    def list_garments_for_user(self, user_id: str, category: Optional[str] = None) -> List[Garment]:
        raise NotImplementedError

    def list_in_temperature_range(self, user_id: str, low: int, high: int) -> List[Garment]:
        raise NotImplementedError

    def update_garment(self, user_id: str, garment_id: str, updated_fields: Dict[str, object]) -> Optional[Garment]:
        raise NotImplementedError

    def adjust_comfort_temperature(self, user_id: str, garment_id: str, delta: int) -> Optional[Garment]:
        raise NotImplementedError

    def delete_garment(self, user_id: str, garment_id: str) -> Optional[Garment]:
        raise NotImplementedError

    def owned_ids(self, user_id: str, garment_ids: Iterable[str]) -> Set[str]:
        raise NotImplementedError


def sort_for_display(garments: Iterable[Garment]) -> List[Garment]:
    return sorted(garments, key=lambda g: (category_rank(g.category), g.created_at, g.garment_id))


class SQLiteGarmentStore(GarmentStore):
    """Local SQLite-backed store for garments."""

    def __init__(
        self,
        database_path: str | Path = "data/closet.db",
        timeout_seconds: float = 5.0,
        locks: KeyedLocks | None = None,
    ) -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout_seconds = timeout_seconds
        self.locks = locks if locks is not None else KeyedLocks(timeout_seconds=timeout_seconds)
        self._ensure_tables()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(sqlite3.connect(self.database_path, timeout=self.timeout_seconds)) as conn:
                conn.row_factory = sqlite3.Row
                with conn:
                    yield conn
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Garment store error: {exc}", {"database": str(self.database_path)}) from exc

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS garments (
                    garment_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    comfort_temperature INTEGER NOT NULL,
                    image_ref TEXT,
                    created_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_garments_user_category
                    ON garments (user_id, category);
                CREATE INDEX IF NOT EXISTS idx_garments_user_temperature
                    ON garments (user_id, comfort_temperature);
                """
            )

    def _row_to_garment(self, row: sqlite3.Row) -> Garment:
        return Garment(
            garment_id=row["garment_id"],
            user_id=row["user_id"],
            name=row["name"],
            category=row["category"],
            comfort_temperature=row["comfort_temperature"],
            image_ref=row["image_ref"],
            created_at=row["created_at"],
        )

    def _write(self, conn: sqlite3.Connection, garment: Garment, replace: bool = True) -> None:
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        conn.execute(
            f"""
            {verb} INTO garments (
                garment_id, user_id, name, category, comfort_temperature, image_ref, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                garment.garment_id,
                garment.user_id,
                garment.name,
                garment.category,
                garment.comfort_temperature,
                garment.image_ref,
                garment.created_at.isoformat(),
            ),
        )

    def create_garment(self, garment: Garment) -> Garment:
        with self._connect() as conn:
            try:
                self._write(conn, garment, replace=False)
            except sqlite3.IntegrityError as exc:
                raise InvalidReference(
                    f"Garment id {garment.garment_id} is already in use", {"garment_id": garment.garment_id}
                ) from exc
        return garment

    def get_garment(self, user_id: str, garment_id: str) -> Optional[Garment]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM garments WHERE user_id = ? AND garment_id = ?",
                (user_id, garment_id),
            ).fetchone()
            return self._row_to_garment(row) if row else None

    def list_garments_for_user(self, user_id: str, category: Optional[str] = None) -> List[Garment]:
        with self._connect() as conn:
            if category:
                rows = conn.execute(
                    "SELECT * FROM garments WHERE user_id = ? AND category = ?",
                    (user_id, normalize_category(category)),
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM garments WHERE user_id = ?", (user_id,)).fetchall()
        return sort_for_display(self._row_to_garment(row) for row in rows)

    def list_in_temperature_range(self, user_id: str, low: int, high: int) -> List[Garment]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM garments WHERE user_id = ? AND comfort_temperature BETWEEN ? AND ?",
                (user_id, low, high),
            ).fetchall()
        return sort_for_display(self._row_to_garment(row) for row in rows)

    def update_garment(self, user_id: str, garment_id: str, updated_fields: Dict[str, object]) -> Optional[Garment]:
        with self.locks.hold(("garment", garment_id)):
            current = self.get_garment(user_id, garment_id)
            if not current:
                return None

            for key, value in updated_fields.items():
                if key in _IMMUTABLE_FIELDS or value is None:
                    continue
                if key == "category":
                    value = validate_category(str(value))
                elif key == "comfort_temperature":
                    value = coerce_temperature(value)
                if hasattr(current, key):
                    setattr(current, key, value)

            validated = Garment(**asdict(current))
            with self._connect() as conn:
                self._write(conn, validated)
            return validated

    def adjust_comfort_temperature(self, user_id: str, garment_id: str, delta: int) -> Optional[Garment]:
        with self.locks.hold(("garment", garment_id)):
            with self._connect() as conn:
                cursor = conn.execute(
                    "UPDATE garments SET comfort_temperature = comfort_temperature + ? "
                    "WHERE user_id = ? AND garment_id = ?",
                    (int(delta), user_id, garment_id),
                )
                if cursor.rowcount == 0:
                    return None
                row = conn.execute(
                    "SELECT * FROM garments WHERE garment_id = ?", (garment_id,)
                ).fetchone()
            return self._row_to_garment(row)

    def delete_garment(self, user_id: str, garment_id: str) -> Optional[Garment]:
        with self.locks.hold(("garment", garment_id)):
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM garments WHERE user_id = ? AND garment_id = ?",
                    (user_id, garment_id),
                ).fetchone()
                if row is None:
                    return None
                conn.execute("DELETE FROM garments WHERE garment_id = ?", (garment_id,))
            return self._row_to_garment(row)

    def owned_ids(self, user_id: str, garment_ids: Iterable[str]) -> Set[str]:
        ids = list(dict.fromkeys(garment_ids))
        if not ids:
            return set()
        placeholders = ", ".join("?" for _ in ids)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT garment_id FROM garments WHERE user_id = ? AND garment_id IN ({placeholders})",
                (user_id, *ids),
            ).fetchall()
        return {row["garment_id"] for row in rows}


__all__ = ["GarmentStore", "SQLiteGarmentStore", "sort_for_display"]
