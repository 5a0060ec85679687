"""
Shared utilities — bag time conversion and timestamp formatting.
"""

from datetime import datetime, timezone
from typing import Optional

from core.constants import NS_PER_SEC


def ns_to_sec(timestamp_ns: int) -> float:
    """Convert a bag timestamp (nanoseconds) to seconds."""
    return timestamp_ns / NS_PER_SEC


def sec_to_ns(timestamp_sec: Optional[float]) -> Optional[int]:
    """Convert seconds to a bag timestamp (nanoseconds). ``None`` passes through."""
    if timestamp_sec is None:
        return None
    return int(round(timestamp_sec * NS_PER_SEC))


def format_absolute_time(unix_sec: float) -> str:
    """Convert Unix epoch seconds to a human-readable UTC datetime string."""
    dt = datetime.fromtimestamp(unix_sec, tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]  # millisecond precision
