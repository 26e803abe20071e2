from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from config.settings import DatabaseSettings, MonitoringSettings
from database.connection import DatabaseManager
from database.models import CheckStatus
from database.repositories import LogRepository, SiteRepository, UserRepository
from monitoring.probe import ProbeResult


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------

@dataclass
class FakeSite:
    id: int
    url: str
    interval_minutes: int = 5
    is_active: bool = True
    last_checked: Optional[datetime] = None
    name: str = "site"


@dataclass
class FakeLog:
    site_id: int
    status: str
    response_time: int
    created_at: datetime
    id: int = 0


class InMemorySiteStore:
    def __init__(self, sites: Optional[List[FakeSite]] = None) -> None:
        self.sites: Dict[int, FakeSite] = {s.id: s for s in sites or []}
        self.list_calls = 0
        self.fail_list = False
        self.fail_update_for: set = set()

    def add(self, site: FakeSite) -> FakeSite:
        self.sites[site.id] = site
        return site

    async def list_active_sites(self) -> List[FakeSite]:
        self.list_calls += 1
        if self.fail_list:
            raise RuntimeError("site listing unavailable")
        return [s for s in self.sites.values() if s.is_active]

    async def update_last_checked(self, site_id: int, timestamp: datetime) -> None:
        if site_id in self.fail_update_for:
            raise RuntimeError(f"update failed for {site_id}")
        self.sites[site_id].last_checked = timestamp


class InMemoryLogStore:
    def __init__(self) -> None:
        self.logs: List[FakeLog] = []
        self._ids = itertools.count(1)
        self.fail_append_for: set = set()

    def seed(self, site_id: int, status: CheckStatus, response_time: int, created_at: datetime) -> FakeLog:
        log = FakeLog(site_id, CheckStatus(status).value, response_time, created_at, next(self._ids))
        self.logs.append(log)
        return log

    async def append_log(
        self,
        site_id: int,
        status: CheckStatus,
        response_time_ms: int,
        timestamp: Optional[datetime] = None,
    ) -> FakeLog:
        if site_id in self.fail_append_for:
            raise RuntimeError(f"append failed for {site_id}")
        return self.seed(site_id, status, response_time_ms, timestamp or datetime(2024, 1, 1))

    async def list_recent_logs(self, site_id: int, limit: int) -> List[FakeLog]:
        logs = [log for log in self.logs if log.site_id == site_id]
        logs.sort(key=lambda log: (log.created_at, log.id), reverse=True)
        return logs[:limit]

    def for_site(self, site_id: int) -> List[FakeLog]:
        return [log for log in self.logs if log.site_id == site_id]


@dataclass
class FakeProbe:
    """Probe executor double: canned results per URL, optional crash URLs."""

    results: Dict[str, ProbeResult] = field(default_factory=dict)
    crash_urls: set = field(default_factory=set)
    calls: List[str] = field(default_factory=list)

    async def probe(self, url: str) -> ProbeResult:
        self.calls.append(url)
        if url in self.crash_urls:
            raise RuntimeError("probe blew up")
        return self.results.get(url, ProbeResult(CheckStatus.UP, 42, 200))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def monitoring_settings() -> MonitoringSettings:
    return MonitoringSettings(tick_interval=0.05, probe_timeout=1.0, max_concurrent_probes=5)


@pytest.fixture
def site_store() -> InMemorySiteStore:
    return InMemorySiteStore()


@pytest.fixture
def log_store() -> InMemoryLogStore:
    return InMemoryLogStore()


@pytest.fixture
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest_asyncio.fixture
async def db_manager(tmp_path):
    manager = DatabaseManager(DatabaseSettings(type="sqlite", sqlite_path=tmp_path / "sentinel.db"))
    await manager.connect()
    try:
        yield manager
    finally:
        await manager.disconnect()


@pytest_asyncio.fixture
async def owner(db_manager):
    return await UserRepository(db_manager).create_user("owner@example.com")


@pytest.fixture
def site_repo(db_manager) -> SiteRepository:
    return SiteRepository(db_manager)


@pytest.fixture
def log_repo(db_manager) -> LogRepository:
    return LogRepository(db_manager)
