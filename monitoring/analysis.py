"""
Analysis input for a site's recent check history.

Renders the newest-first log window into the request text handed to an
external summarizer, which is expected to answer with a JSON object
holding "analysis", "suggestions" and "anomalies". Calling the
summarizer is left to the caller.
"""

from typing import Optional, Sequence

from config.constants import ANALYSIS_WINDOW
from database.models import CheckStatus
from monitoring.interfaces import LogRecord, LogStore
from monitoring.stats import resolve_window
from utils.logger import get_logger


logger = get_logger("Analysis")


def format_log_line(log: LogRecord) -> str:
    status = CheckStatus(log.status).value
    return f"[{log.created_at.isoformat()}] Status: {status}, Response Time: {log.response_time}ms"


def build_analysis_prompt(site, logs: Sequence[LogRecord]) -> str:
    """
    Build the summarizer request for *site* from its recent *logs*.

    *site* needs ``name`` and ``url`` attributes.
    """
    history = "\n".join(format_log_line(log) for log in logs)
    if not history:
        history = "(no checks recorded yet)"

    return (
        f'Analyze the uptime and performance history of the website "{site.name}" ({site.url}).\n'
        f"Recent checks (newest first):\n"
        f"{history}\n\n"
        "Respond with a JSON object containing:\n"
        '- "analysis": a short summary of the site\'s health and performance\n'
        '- "suggestions": a list of concrete improvement suggestions\n'
        '- "anomalies": a list of unusual events such as outages or latency spikes\n'
    )


class AnalysisRequestBuilder:
    """Fetches the analysis window for a site and renders the request."""

    def __init__(self, log_store: LogStore, window: int = ANALYSIS_WINDOW):
        self.log_store = log_store
        self.window = window

    async def build(self, site, window: Optional[int] = None) -> str:
        window = resolve_window(window, self.window)
        logs = await self.log_store.list_recent_logs(site.id, window)
        logger.debug(f"[Analysis] site={site.id} building request from {len(logs)} log(s)")
        return build_analysis_prompt(site, logs)
