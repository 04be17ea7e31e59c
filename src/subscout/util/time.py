"""Timestamp and duration utilities.

Simple helpers to keep time handling consistent across the tool.
"""

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def duration_ms(start: datetime, end: Optional[datetime] = None) -> float:
    """Calculate duration in milliseconds between two timestamps.
    
    If end is None, uses current time.
    """
    if end is None:
        end = now_utc()
    delta = end - start
    return delta.total_seconds() * 1000


def format_elapsed(seconds: float) -> str:
    """Format a run duration as HH:MM:SS."""
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
