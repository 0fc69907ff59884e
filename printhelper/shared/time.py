"""Time helpers."""

import time
from datetime import UTC, datetime


def utcnow_iso() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)
