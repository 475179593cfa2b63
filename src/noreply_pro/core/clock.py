"""Time helpers."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Get the current UTC datetime."""
    return datetime.now(timezone.utc)
