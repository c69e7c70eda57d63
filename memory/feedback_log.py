"""Append-only history of feedback submissions."""
from __future__ import annotations

import sqlite3
from contextlib import closing, contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, List

from models.errors import PersistenceFailure
from models.outfit import Feedback


class FeedbackLog:
    """Interface for the feedback history."""

    def append(self, feedback: Feedback) -> Feedback:
        raise NotImplementedError

    def count_for_day(self, user_id: str, day: date) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: str, limit: int = 50) -> List[Feedback]:
        raise NotImplementedError


class SQLiteFeedbackLog(FeedbackLog):
    """SQLite-backed feedback history."""

    def __init__(self, db_path: str | Path = "data/closet.db", timeout_seconds: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout_seconds = timeout_seconds
        self._init_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(sqlite3.connect(self.db_path, timeout=self.timeout_seconds)) as conn:
                conn.row_factory = sqlite3.Row
                with conn:
                    yield conn
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Feedback log error: {exc}", {"database": str(self.db_path)}) from exc

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS feedback (
                    feedback_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    day TEXT NOT NULL,
                    rating INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_feedback_user_day ON feedback (user_id, day);
                """
            )

    def append(self, feedback: Feedback) -> Feedback:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO feedback(feedback_id, user_id, day, rating, created_at) VALUES (?, ?, ?, ?, ?)",
                (
                    feedback.feedback_id,
                    feedback.user_id,
                    feedback.date.isoformat(),
                    feedback.rating,
                    feedback.created_at.isoformat(),
                ),
            )
        return feedback

    def count_for_day(self, user_id: str, day: date) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS ct FROM feedback WHERE user_id = ? AND day = ?",
                (user_id, day.isoformat()),
            ).fetchone()
        return int(row["ct"]) if row else 0

    def list_for_user(self, user_id: str, limit: int = 50) -> List[Feedback]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM feedback WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
        return [
            Feedback(
                feedback_id=row["feedback_id"],
                user_id=row["user_id"],
                date=date.fromisoformat(row["day"]),
                rating=row["rating"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]


__all__ = ["FeedbackLog", "SQLiteFeedbackLog"]
