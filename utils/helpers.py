"""
============================================================================
SITE SENTINEL - HELPERS UTILITY
============================================================================
Time helpers shared by the scheduler, the probe and the health server.
============================================================================
"""

import time
from datetime import datetime, timezone


class TimeHelper:
    """
    Time and date manipulation utilities.

    Timestamps are stored as naive UTC datetimes so they compare cleanly
    with values read back from SQLite, which drops tzinfo.
    """

    @staticmethod
    def get_utc_now() -> datetime:
        """Get current UTC datetime (naive)."""
        return datetime.now(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def to_naive_utc(dt: datetime) -> datetime:
        """Convert an aware datetime to naive UTC; naive values pass through."""
        if dt.tzinfo is None:
            return dt
        return dt.astimezone(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def elapsed_ms(start: float) -> int:
        """Whole milliseconds elapsed since a time.perf_counter() reading."""
        return max(0, int(round((time.perf_counter() - start) * 1000)))

    @staticmethod
    def seconds_to_human_readable(seconds: int) -> str:
        """
        Convert seconds to human-readable format.

        Args:
            seconds: Number of seconds

        Returns:
            Human-readable string (e.g., "2h 30m 15s")
        """
        if seconds < 0:
            return "0s"

        days, remainder = divmod(seconds, 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes, secs = divmod(remainder, 60)

        parts = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        if secs > 0 or not parts:
            parts.append(f"{secs}s")

        return " ".join(parts)
