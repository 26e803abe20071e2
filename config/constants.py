"""
Constants Module for Site Sentinel

Fixed values shared by the scheduler, the probe and the stats
aggregator. Anything an operator may reasonably tune lives in
config.settings instead.
"""

from __future__ import annotations

from datetime import datetime
from typing import Final


# Scheduler wake-up cadence. Must stay <= the minimum site interval.
TICK_INTERVAL_SECONDS: Final[int] = 30

# Hard upper bound on a single probe.
PROBE_TIMEOUT_SECONDS: Final[float] = 10.0

MIN_INTERVAL_MINUTES: Final[int] = 1
DEFAULT_INTERVAL_MINUTES: Final[int] = 5

# Log windows
DASHBOARD_STATS_WINDOW: Final[int] = 100
ANALYSIS_WINDOW: Final[int] = 50

DEFAULT_USER_AGENT: Final[str] = "AI-Sentinel-Bot/1.0"

# Reference point for sites that have never been checked (naive UTC).
NEVER_CHECKED_EPOCH: Final[datetime] = datetime(1970, 1, 1)

# Stats defaults when a site has no logs yet
EMPTY_UPTIME: Final[float] = 100.0
EMPTY_AVG_RESPONSE_TIME: Final[int] = 0
