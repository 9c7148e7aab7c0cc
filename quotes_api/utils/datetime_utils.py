"""
DateTime helpers shared by the models and the auth services.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """
    Attach UTC to naive values.

    SQLite hands timestamps back without their offset; everything we store
    is UTC, so a naive value is read as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
