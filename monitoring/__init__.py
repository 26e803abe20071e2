"""
============================================================================
SITE SENTINEL - MONITORING PACKAGE
============================================================================
Runtime checking infrastructure:
    • ProbeExecutor      — bounded-time HTTP GET liveness probe
    • CheckScheduler     — 30 s tick that probes every due site
    • StatsAggregator    — uptime / latency / last status over a log window
    • AnalysisRequestBuilder — renders recent logs for an external summarizer
    • HealthServer       — aiohttp liveness endpoints for the service

monitoring/
├── __init__.py
├── interfaces.py        ← storage protocols
├── probe.py             ← ProbeExecutor + ProbeResult
├── scheduler.py         ← CheckScheduler + TickReport
├── stats.py             ← StatsAggregator + SiteStats
├── analysis.py          ← analysis request text
└── health.py            ← HealthServer
============================================================================
"""

from monitoring.interfaces import LogRecord, LogStore, SiteRecord, SiteStore
from monitoring.probe import ProbeExecutor, ProbeResult, classify_status_code
from monitoring.scheduler import CheckScheduler, TickReport
from monitoring.stats import SiteStats, StatsAggregator, fold_logs
from monitoring.analysis import AnalysisRequestBuilder, build_analysis_prompt
from monitoring.health import HealthServer

__all__ = [
    # Storage contracts
    "SiteRecord",
    "LogRecord",
    "SiteStore",
    "LogStore",

    # Probe
    "ProbeExecutor",
    "ProbeResult",
    "classify_status_code",

    # Scheduler
    "CheckScheduler",
    "TickReport",

    # Stats
    "StatsAggregator",
    "SiteStats",
    "fold_logs",

    # Analysis
    "AnalysisRequestBuilder",
    "build_analysis_prompt",

    # Health
    "HealthServer",
]
