"""
Storage contracts consumed by the check scheduler and the stats aggregator.

database.repositories provides the SQLAlchemy implementations; tests use
in-memory stores with the same shape.
"""

from datetime import datetime
from typing import Optional, Protocol, Sequence

from database.models import CheckStatus


class SiteRecord(Protocol):
    id: int
    url: str
    interval_minutes: int
    is_active: bool
    last_checked: Optional[datetime]


class LogRecord(Protocol):
    status: str
    response_time: int
    created_at: datetime


class SiteStore(Protocol):
    async def list_active_sites(self) -> Sequence[SiteRecord]: ...

    async def update_last_checked(self, site_id: int, timestamp: datetime) -> None: ...


class LogStore(Protocol):
    async def append_log(
        self,
        site_id: int,
        status: CheckStatus,
        response_time_ms: int,
        timestamp: Optional[datetime] = None,
    ) -> object: ...

    async def list_recent_logs(self, site_id: int, limit: int) -> Sequence[LogRecord]: ...
