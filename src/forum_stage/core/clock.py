"""UTC helpers shared by the models and the ranking engine."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Timezone-aware now, used as the column default for ``created_at``."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC, reading naive values as already UTC.

    SQLite drops the offset on the way back out, so stored timestamps come
    back naive.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
