from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from database.models import CheckStatus
from exceptions import (
    DatabaseQueryError,
    InvalidIntervalError,
    InvalidURLError,
    SiteNotFoundError,
    ValidationException,
)
from monitoring.scheduler import CheckScheduler
from monitoring.stats import StatsAggregator
from tests.conftest import FakeProbe


T0 = datetime(2024, 3, 1, 12, 0, 0)


@pytest.mark.asyncio
async def test_create_site_defaults(site_repo, owner) -> None:
    site = await site_repo.create_site(owner.id, "  Blog ", "https://blog.example.com")

    assert site.id is not None
    assert site.name == "Blog"
    assert site.interval_minutes == 5
    assert site.is_active is True
    assert site.last_checked is None


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["", "ftp://example.com", "not a url", "https://"])
async def test_create_site_rejects_bad_url(site_repo, owner, url) -> None:
    with pytest.raises(InvalidURLError):
        await site_repo.create_site(owner.id, "Bad", url)


@pytest.mark.asyncio
@pytest.mark.parametrize("interval", [0, -3, 2.5, True, "5"])
async def test_create_site_rejects_bad_interval(site_repo, owner, interval) -> None:
    with pytest.raises(InvalidIntervalError):
        await site_repo.create_site(owner.id, "Bad", "https://example.com", interval_minutes=interval)


@pytest.mark.asyncio
async def test_list_active_sites(site_repo, owner) -> None:
    a = await site_repo.create_site(owner.id, "A", "https://a.example.com")
    await site_repo.create_site(owner.id, "B", "https://b.example.com", is_active=False)
    c = await site_repo.create_site(owner.id, "C", "https://c.example.com", interval_minutes=1)

    active = await site_repo.list_active_sites()

    assert [s.id for s in active] == [a.id, c.id]


@pytest.mark.asyncio
async def test_update_site(site_repo, owner) -> None:
    site = await site_repo.create_site(owner.id, "A", "https://a.example.com")

    updated = await site_repo.update_site(site.id, interval_minutes=15, is_active=False)

    assert updated.interval_minutes == 15
    assert updated.is_active is False
    assert (await site_repo.get_site(site.id)).interval_minutes == 15


@pytest.mark.asyncio
async def test_update_site_errors(site_repo, owner) -> None:
    site = await site_repo.create_site(owner.id, "A", "https://a.example.com")

    with pytest.raises(SiteNotFoundError):
        await site_repo.update_site(site.id + 100, name="ghost")
    with pytest.raises(ValidationException):
        await site_repo.update_site(site.id, last_checked=T0)
    with pytest.raises(InvalidIntervalError):
        await site_repo.update_site(site.id, interval_minutes=0)


@pytest.mark.asyncio
async def test_sites_by_user_newest_first(site_repo, owner) -> None:
    first = await site_repo.create_site(owner.id, "A", "https://a.example.com")
    second = await site_repo.create_site(owner.id, "B", "https://b.example.com")

    sites = await site_repo.get_sites_by_user(owner.id)

    assert [s.id for s in sites] == [second.id, first.id]


@pytest.mark.asyncio
async def test_update_last_checked_stores_naive_utc(site_repo, owner) -> None:
    site = await site_repo.create_site(owner.id, "A", "https://a.example.com")
    aware = datetime(2024, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    await site_repo.update_last_checked(site.id, aware)

    assert (await site_repo.get_site(site.id)).last_checked == T0


@pytest.mark.asyncio
async def test_logs_newest_first_and_limited(site_repo, log_repo, owner) -> None:
    site = await site_repo.create_site(owner.id, "A", "https://a.example.com")
    for i in range(5):
        await log_repo.append_log(site.id, CheckStatus.UP, 100 + i, T0 + timedelta(minutes=i))

    logs = await log_repo.list_recent_logs(site.id, 3)

    assert [log.response_time for log in logs] == [104, 103, 102]
    assert logs[0].status == "UP"


@pytest.mark.asyncio
async def test_append_log_rejects_unknown_status(site_repo, log_repo, owner) -> None:
    site = await site_repo.create_site(owner.id, "A", "https://a.example.com")
    with pytest.raises(ValidationException):
        await log_repo.append_log(site.id, CheckStatus.UNKNOWN, 10, T0)


@pytest.mark.asyncio
async def test_delete_site_removes_logs(site_repo, log_repo, owner) -> None:
    keep = await site_repo.create_site(owner.id, "Keep", "https://keep.example.com")
    drop = await site_repo.create_site(owner.id, "Drop", "https://drop.example.com")
    await log_repo.append_log(keep.id, CheckStatus.UP, 10, T0)
    await log_repo.append_log(drop.id, CheckStatus.DOWN, 10, T0)

    await site_repo.delete_site(drop.id)

    assert await site_repo.get_site(drop.id) is None
    assert await log_repo.list_recent_logs(drop.id, 100) == []
    assert len(await log_repo.list_recent_logs(keep.id, 100)) == 1

    with pytest.raises(SiteNotFoundError):
        await site_repo.delete_site(drop.id)


@pytest.mark.asyncio
async def test_scheduler_against_database(site_repo, log_repo, owner, monitoring_settings) -> None:
    site = await site_repo.create_site(owner.id, "A", "https://a.example.com")
    scheduler = CheckScheduler(site_repo, log_repo, probe_executor=FakeProbe(), settings=monitoring_settings)

    report = await scheduler.run_tick(T0)
    await scheduler.run_tick(T0 + timedelta(minutes=1))

    assert report.checked == 1
    assert (await site_repo.get_site(site.id)).last_checked == T0
    stats = await StatsAggregator(log_repo).compute_stats(site.id)
    assert stats.to_dict() == {"uptime": 100.0, "avgResponseTime": 42, "lastStatus": "UP"}


@pytest.mark.asyncio
async def test_failed_statement_reports_sanitized_query(log_repo) -> None:
    with pytest.raises(DatabaseQueryError) as excinfo:
        await log_repo.append_log(9999, CheckStatus.UP, 10, T0)

    assert "INSERT INTO logs" in excinfo.value.details["query"]
