"""
============================================================================
SITE SENTINEL - STATS AGGREGATOR
============================================================================
Derives dashboard figures from the most recent logs of a site:

    uptime            = UP / total × 100
    avg_response_time = mean latency in ms, rounded half-up
    last_status       = status of the newest log

Stats are computed on demand and never persisted. Only the newest
`window` logs count (100 for the dashboard, 50 for analysis input), so
older history ages out of the figures.
============================================================================
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from config.constants import (
    ANALYSIS_WINDOW,
    DASHBOARD_STATS_WINDOW,
    EMPTY_AVG_RESPONSE_TIME,
    EMPTY_UPTIME,
)
from database.models import CheckStatus
from monitoring.interfaces import LogRecord, LogStore
from utils.logger import get_logger


logger = get_logger("Stats")


@dataclass(frozen=True)
class SiteStats:
    uptime: float
    avg_response_time: int
    last_status: CheckStatus
    sample_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Shape served to the dashboard."""
        return {
            "uptime": self.uptime,
            "avgResponseTime": self.avg_response_time,
            "lastStatus": self.last_status.value,
        }


def resolve_window(window: Optional[int], default: int) -> int:
    """An explicit window wins over the default; it must be at least 1."""
    if window is None:
        return default
    if isinstance(window, bool) or not isinstance(window, int) or window < 1:
        raise ValueError(f"Log window must be a positive integer, got {window!r}")
    return window


def round_half_up(value: float) -> int:
    """Round .5 upwards, unlike the banker's rounding of round()."""
    return int(math.floor(value + 0.5))


def fold_logs(logs: Sequence[LogRecord]) -> SiteStats:
    """
    Fold a newest-first log window into SiteStats.

    Pure: the same window always yields the same stats.
    """
    total = len(logs)
    if total == 0:
        return SiteStats(
            uptime=EMPTY_UPTIME,
            avg_response_time=EMPTY_AVG_RESPONSE_TIME,
            last_status=CheckStatus.UNKNOWN,
            sample_size=0,
        )

    up = sum(1 for log in logs if CheckStatus(log.status) is CheckStatus.UP)
    latency_sum = sum(log.response_time for log in logs)

    return SiteStats(
        uptime=up * 100 / total,
        avg_response_time=round_half_up(latency_sum / total),
        last_status=CheckStatus(logs[0].status),
        sample_size=total,
    )


class StatsAggregator:
    """
    Read-side view over the log store.

    Example:
        stats = await StatsAggregator(log_repo).compute_stats(site.id)
        stats.to_dict()  # {"uptime": 98.0, "avgResponseTime": 212, "lastStatus": "UP"}
    """

    def __init__(
        self,
        log_store: LogStore,
        default_window: int = DASHBOARD_STATS_WINDOW,
        analysis_window: int = ANALYSIS_WINDOW,
    ):
        if default_window < 1 or analysis_window < 1:
            raise ValueError("Stats windows must be positive")
        self.log_store = log_store
        self.default_window = default_window
        self.analysis_window = analysis_window

    async def compute_stats(self, site_id: int, window: Optional[int] = None) -> SiteStats:
        window = resolve_window(window, self.default_window)
        logs = await self.log_store.list_recent_logs(site_id, window)
        stats = fold_logs(logs)
        logger.debug(
            f"[Stats] site={site_id} window={window} samples={stats.sample_size} "
            f"uptime={stats.uptime:.1f}% avg={stats.avg_response_time}ms"
        )
        return stats

    async def recent_logs(self, site_id: int, window: Optional[int] = None) -> Sequence[LogRecord]:
        """Newest-first logs used by chart and analysis views."""
        return await self.log_store.list_recent_logs(site_id, resolve_window(window, self.analysis_window))
