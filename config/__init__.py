"""
Configuration Package for Site Sentinel

- Settings management with environment variable support
- Constants shared by the scheduler, probe and stats aggregator
"""

from config.settings import (
    Settings,
    DatabaseSettings,
    MonitoringSettings,
    LoggingSettings,
    HealthSettings,
    Environment,
    LogLevel,
    DatabaseType,
    get_settings
)

from config.constants import (
    TICK_INTERVAL_SECONDS,
    PROBE_TIMEOUT_SECONDS,
    MIN_INTERVAL_MINUTES,
    DEFAULT_INTERVAL_MINUTES,
    DASHBOARD_STATS_WINDOW,
    ANALYSIS_WINDOW,
    DEFAULT_USER_AGENT,
    NEVER_CHECKED_EPOCH
)

__all__ = [
    # Settings
    "Settings",
    "DatabaseSettings",
    "MonitoringSettings",
    "LoggingSettings",
    "HealthSettings",
    "Environment",
    "LogLevel",
    "DatabaseType",
    "get_settings",

    # Constants
    "TICK_INTERVAL_SECONDS",
    "PROBE_TIMEOUT_SECONDS",
    "MIN_INTERVAL_MINUTES",
    "DEFAULT_INTERVAL_MINUTES",
    "DASHBOARD_STATS_WINDOW",
    "ANALYSIS_WINDOW",
    "DEFAULT_USER_AGENT",
    "NEVER_CHECKED_EPOCH"
]
