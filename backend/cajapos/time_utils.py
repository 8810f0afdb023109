from __future__ import annotations

from datetime import date, datetime, timezone


def _to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    """Current UTC time, naive. Every stored timestamp uses this form."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_today() -> datetime:
    """Midnight of the current UTC day; the daily report counts from here."""
    return datetime.combine(utcnow().date(), datetime.min.time())


def parse_iso_datetime(value: str | None) -> datetime | None:
    """
    Query-string timestamp -> UTC-naive datetime.

    Accepts a bare date, a naive datetime (taken as UTC), or one with a
    "Z" / "+HH:MM" offset. Blank input is None; garbage raises ValueError.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return _to_naive_utc(datetime.fromisoformat(text))


def parse_iso_date(value: str | None) -> date | None:
    """"YYYY-MM-DD"; anything after the date part is ignored."""
    text = (value or "").strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def to_utc_z(dt: datetime | None) -> str | None:
    """Whole-second ISO-8601 with a trailing Z, e.g. 2026-10-19T14:05:00Z."""
    if dt is None:
        return None
    return _to_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"


def to_iso_date(d: date | None) -> str | None:
    return d.isoformat() if d is not None else None
