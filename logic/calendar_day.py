"""Calendar-day normalisation for outfit sessions and feedback."""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def resolve_timezone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{name}'") from exc


def to_calendar_day(value: date | datetime | str, tz: ZoneInfo | str | None = None) -> date:
    """Truncate a date-like value to the calendar day in the reference timezone.

    Aware datetimes are converted to ``tz`` first; naive ones are taken as
    already local. Strings are parsed as ISO-8601, including a trailing ``Z``.
    """

    zone = tz if isinstance(tz, ZoneInfo) else resolve_timezone(tz)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValueError("date cannot be empty")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw) if "T" in raw or " " in raw else date.fromisoformat(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid date '{value}'") from exc

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(zone)
        return value.date()
    if isinstance(value, date):
        return value
    raise ValueError(f"Unsupported date value {value!r}")


__all__ = ["resolve_timezone", "to_calendar_day"]
