"""Injectable time source.

Entities and services never call ``datetime.now`` directly; they receive a
``Clock`` so tests can pin timestamps.
"""

from collections.abc import Callable
from datetime import UTC, datetime


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (stores may hand back naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def parse_datetime(value: datetime | str | None) -> datetime | None:
    """Accept a datetime or an ISO-8601 string from a stored snapshot."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return ensure_utc_aware(value)
