"""Small helpers shared across layers."""

from datetime import datetime, timezone


def iso_timestamp(value: datetime) -> str:
    """Format ``value`` as ISO 8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
