from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import func

from .extensions import db


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def store_today() -> date:
    """
    Current calendar date according to the database server.

    Invoice numbering and daily counts use this instead of the app host
    clock so that every app instance agrees on the business day.
    """
    value = db.session.query(func.current_date()).scalar()
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


def parse_birth_date(value) -> Optional[date]:
    """
    Normalize a date of birth to a date-only value.

    Accepts date/datetime objects, "YYYY-MM-DD", or a full ISO-8601
    timestamp as sent by the mobile client. Blank or unparseable input
    yields None rather than an error.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
