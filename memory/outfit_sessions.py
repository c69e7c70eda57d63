"""Outfit session stores and the manager enforcing one outfit per owner and day."""
from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import threading
from contextlib import closing, contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional
from zoneinfo import ZoneInfo

from closet_app.logging_config import get_logger, log_event
from logic.calendar_day import resolve_timezone, to_calendar_day
from memory.locks import KeyedLocks
from models.errors import EmptySelection, InvalidReference, NotFound, PersistenceFailure
from models.outfit import OutfitSession
from tools.garment_store import GarmentStore

LOGGER = get_logger(__name__)


def _session_from_record(record: Dict[str, Any]) -> OutfitSession:
    return OutfitSession(
        session_id=record["session_id"],
        user_id=record["user_id"],
        date=date.fromisoformat(record["date"]),
        garment_ids=list(record["garment_ids"]),
        created_at=datetime.fromisoformat(record["created_at"]),
        updated_at=datetime.fromisoformat(record["updated_at"]),
    )


def _in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    if start and day < start:
        return False
    if end and day > end:
        return False
    return True


class OutfitSessionStore:
    """Interface for outfit session persistence, keyed by (user_id, date)."""

    def get(self, user_id: str, day: date) -> Optional[OutfitSession]:
        raise NotImplementedError

    def upsert(self, session: OutfitSession) -> OutfitSession:
        raise NotImplementedError

    def list_for_user(
        self, user_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[OutfitSession]:
        raise NotImplementedError


class JSONOutfitSessionStore(OutfitSessionStore):
    """JSON-file-backed store, one file per owner, suitable for local runs."""

    def __init__(self, base_dir: str | Path = "data/outfits") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._file_lock = threading.Lock()

    def _path(self, user_id: str) -> Path:
        # Hashed so distinct owner ids never share a file.
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self.base_dir / f"{digest}.json"

    def _load(self, user_id: str) -> Dict[str, Any]:
        path = self._path(user_id)
        if not path.exists():
            return {"user_id": user_id, "sessions": {}}
        try:
            payload = json.loads(path.read_text())
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(f"Unreadable outfit file for owner: {exc}") from exc
        sessions = payload.get("sessions", {})
        return {
            "user_id": user_id,
            "sessions": {day: record for day, record in sessions.items() if record.get("user_id") == user_id},
        }

    def _save(self, user_id: str, payload: Dict[str, Any]) -> None:
        try:
            self._path(user_id).write_text(json.dumps(payload, indent=2))
        except OSError as exc:
            raise PersistenceFailure(f"Failed to write outfit file: {exc}") from exc

    def get(self, user_id: str, day: date) -> Optional[OutfitSession]:
        with self._file_lock:
            record = self._load(user_id)["sessions"].get(day.isoformat())
        return _session_from_record(record) if record else None

    def upsert(self, session: OutfitSession) -> OutfitSession:
        with self._file_lock:
            payload = self._load(session.user_id)
            payload["sessions"][session.date.isoformat()] = session.to_dict()
            self._save(session.user_id, payload)
        return session

    def list_for_user(
        self, user_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[OutfitSession]:
        with self._file_lock:
            records = list(self._load(user_id)["sessions"].values())
        sessions = [_session_from_record(record) for record in records]
        return sorted((s for s in sessions if _in_range(s.date, start, end)), key=lambda s: s.date)


class SQLiteOutfitSessionStore(OutfitSessionStore):
    """SQLite-backed session store with a unique (user_id, day) key."""

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
            raise PersistenceFailure(f"Outfit session store error: {exc}", {"database": str(self.db_path)}) from exc

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS outfit_sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    day TEXT NOT NULL,
                    garment_ids TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (user_id, day)
                );
                """
            )

    def _row_to_session(self, row: sqlite3.Row) -> OutfitSession:
        return OutfitSession(
            session_id=row["session_id"],
            user_id=row["user_id"],
            date=date.fromisoformat(row["day"]),
            garment_ids=json.loads(row["garment_ids"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get(self, user_id: str, day: date) -> Optional[OutfitSession]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM outfit_sessions WHERE user_id = ? AND day = ?",
                (user_id, day.isoformat()),
            ).fetchone()
        return self._row_to_session(row) if row else None

    def upsert(self, session: OutfitSession) -> OutfitSession:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO outfit_sessions(session_id, user_id, day, garment_ids, created_at, updated_at)\n"
                "VALUES (?, ?, ?, ?, ?, ?)\n"
                "ON CONFLICT(user_id, day) DO UPDATE SET garment_ids=excluded.garment_ids, updated_at=excluded.updated_at",
                (
                    session.session_id,
                    session.user_id,
                    session.date.isoformat(),
                    json.dumps(session.garment_ids),
                    session.created_at.isoformat(),
                    session.updated_at.isoformat(),
                ),
            )
        return session

    def list_for_user(
        self, user_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[OutfitSession]:
        query = "SELECT * FROM outfit_sessions WHERE user_id = ?"
        params: List[Any] = [user_id]
        if start:
            query += " AND day >= ?"
            params.append(start.isoformat())
        if end:
            query += " AND day <= ?"
            params.append(end.isoformat())
        with self._connect() as conn:
            rows = conn.execute(query + " ORDER BY day ASC", params).fetchall()
        return [self._row_to_session(row) for row in rows]


def dedupe_ids(garment_ids: Iterable[str]) -> List[str]:
    """Collapse repeated ids, keeping the first occurrence's position."""

    return list(dict.fromkeys(str(garment_id) for garment_id in garment_ids))


class OutfitSessionManager:
    """Registers and looks up the outfit worn by an owner on a calendar day."""

    def __init__(
        self,
        store: OutfitSessionStore,
        garment_store: GarmentStore,
        timezone_name: str | None = "UTC",
        locks: KeyedLocks | None = None,
    ) -> None:
        self.store = store
        self.garment_store = garment_store
        self.timezone: ZoneInfo = resolve_timezone(timezone_name)
        self.locks = locks if locks is not None else KeyedLocks()

    def calendar_day(self, value: date | datetime | str) -> date:
        return to_calendar_day(value, self.timezone)

    def register_outfit(self, user_id: str, day: date | datetime | str, garment_ids: Iterable[str]) -> OutfitSession:
        """Create the day's session or replace its garments wholesale.

        All checks run before anything is written, so a rejected call leaves
        any existing session untouched.
        """

        target_day = self.calendar_day(day)
        selection = dedupe_ids(garment_ids or [])
        if not selection:
            raise EmptySelection("An outfit needs at least one garment", {"date": target_day.isoformat()})

        owned = self.garment_store.owned_ids(user_id, selection)
        foreign = [garment_id for garment_id in selection if garment_id not in owned]
        if foreign:
            raise InvalidReference(
                "Outfit references garments the owner does not have",
                {"garment_ids": foreign, "date": target_day.isoformat()},
            )

        with self.locks.hold(("outfit", user_id, target_day)):
            existing = self.store.get(user_id, target_day)
            now = datetime.now(timezone.utc)
            if existing:
                existing.garment_ids = selection
                existing.updated_at = now
                session = self.store.upsert(existing)
                event = "outfit_replaced"
            else:
                session = self.store.upsert(
                    OutfitSession(user_id=user_id, date=target_day, garment_ids=selection, created_at=now, updated_at=now)
                )
                event = "outfit_registered"

        log_event(
            LOGGER,
            logging.INFO,
            event,
            user_id=user_id,
            date=target_day,
            garment_count=len(selection),
        )
        return session

    def find_session(self, user_id: str, day: date | datetime | str) -> Optional[OutfitSession]:
        return self.store.get(user_id, self.calendar_day(day))

    def get_session(self, user_id: str, day: date | datetime | str) -> OutfitSession:
        target_day = self.calendar_day(day)
        session = self.store.get(user_id, target_day)
        if session is None:
            raise NotFound(f"No outfit registered for {target_day.isoformat()}", {"date": target_day.isoformat()})
        return session

    def history(
        self,
        user_id: str,
        start: date | datetime | str | None = None,
        end: date | datetime | str | None = None,
    ) -> List[OutfitSession]:
        start_day = self.calendar_day(start) if start is not None else None
        end_day = self.calendar_day(end) if end is not None else None
        if start_day and end_day and end_day < start_day:
            raise ValueError("end date cannot precede start date")
        return self.store.list_for_user(user_id, start=start_day, end=end_day)


__all__ = [
    "JSONOutfitSessionStore",
    "OutfitSessionManager",
    "OutfitSessionStore",
    "SQLiteOutfitSessionStore",
    "dedupe_ids",
]
