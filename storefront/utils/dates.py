"""Timezone helpers shared by models and services."""
from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on round trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_expiry_date(days: int, now: datetime = None) -> datetime:
    """Return the moment `days` days from now."""
    return (now or utcnow()) + timedelta(days=days)


def is_expired(expires_at, now: datetime = None) -> bool:
    """
    Check whether an expiry timestamp has passed.

    No expiry means the code never expires. Evaluated lazily at read time;
    nothing is ever written back.
    """
    if expires_at is None:
        return False
    return as_utc(now or utcnow()) > as_utc(expires_at)
