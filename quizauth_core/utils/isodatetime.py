"""ISO 8601 timestamp helpers.

Timestamps are stored and returned as UTC strings with a trailing "Z".
Token claims use integer unix seconds, see now_unix().
"""

from datetime import datetime, UTC


def to_timestamp(dt: datetime) -> str:
    """Convert datetime to ISO 8601 UTC timestamp string."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def to_datetime(timestamp: str) -> datetime:
    """Convert ISO 8601 UTC timestamp string to an aware datetime."""
    return datetime.fromisoformat(timestamp.replace("Z", "+00:00"))


def now() -> str:
    """Get current UTC timestamp as ISO 8601 string."""
    return to_timestamp(datetime.now(UTC))


def now_unix() -> int:
    """Current UTC time as integer unix seconds."""
    return int(datetime.now(UTC).timestamp())
