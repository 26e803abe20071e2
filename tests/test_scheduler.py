from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from database.models import CheckStatus
from exceptions import SchedulerStateError
from monitoring.probe import ProbeResult
from monitoring.scheduler import CheckScheduler
from tests.conftest import FakeSite


T0 = datetime(2024, 3, 1, 12, 0, 0)


def _scheduler(site_store, log_store, probe, settings) -> CheckScheduler:
    return CheckScheduler(site_store, log_store, probe_executor=probe, settings=settings, clock=lambda: T0)


# ---------------------------------------------------------------------------
# Due calculation
# ---------------------------------------------------------------------------

def test_never_checked_site_is_due_for_any_now() -> None:
    site = FakeSite(id=1, url="https://a.example", interval_minutes=60 * 24 * 365)
    assert CheckScheduler.is_due(site, datetime(1971, 6, 1))
    assert CheckScheduler.is_due(site, T0)


def test_next_check_due_is_last_checked_plus_interval() -> None:
    site = FakeSite(id=1, url="https://a.example", interval_minutes=5, last_checked=T0)

    assert CheckScheduler.next_check_due(site) == T0 + timedelta(minutes=5)
    assert not CheckScheduler.is_due(site, T0 + timedelta(minutes=4, seconds=59))
    assert CheckScheduler.is_due(site, T0 + timedelta(minutes=5))


def test_aware_now_is_compared_as_utc() -> None:
    site = FakeSite(id=1, url="https://a.example", interval_minutes=5, last_checked=T0)
    aware = (T0 + timedelta(minutes=6)).replace(tzinfo=timezone.utc)
    assert CheckScheduler.is_due(site, aware)


# ---------------------------------------------------------------------------
# Ticks
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_interval_five_minute_scenario(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site = site_store.add(FakeSite(id=1, url="https://a.example", interval_minutes=5))
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    first = await scheduler.run_tick(T0 + timedelta(seconds=30))
    assert first.checked == 1
    assert site.last_checked == T0 + timedelta(seconds=30)

    second = await scheduler.run_tick(T0 + timedelta(minutes=4))
    assert second.due == 0
    assert len(fake_probe.calls) == 1

    third = await scheduler.run_tick(T0 + timedelta(minutes=5, seconds=31))
    assert third.checked == 1
    assert len(fake_probe.calls) == 2
    assert [log.created_at for log in log_store.for_site(1)] == [
        T0 + timedelta(seconds=30),
        T0 + timedelta(minutes=5, seconds=31),
    ]


@pytest.mark.asyncio
async def test_tick_records_log_and_stamps_tick_time(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://up.example"))
    site_store.add(FakeSite(id=2, url="https://down.example"))
    fake_probe.results["https://down.example"] = ProbeResult.down(812, "HTTP 503", 503)
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    now = T0 + timedelta(hours=1)
    report = await scheduler.run_tick(now)

    assert (report.active, report.due, report.checked, report.up, report.down) == (2, 2, 2, 1, 1)
    down_log = log_store.for_site(2)[0]
    assert down_log.status == "DOWN"
    assert down_log.response_time == 812
    assert down_log.created_at == now
    assert site_store.sites[1].last_checked == now
    assert site_store.sites[2].last_checked == now


@pytest.mark.asyncio
async def test_inactive_sites_are_not_probed(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://a.example", is_active=False))
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    report = await scheduler.run_tick(T0)

    assert report.due == 0
    assert fake_probe.calls == []
    assert log_store.logs == []


@pytest.mark.asyncio
async def test_crash_in_one_probe_does_not_stop_others(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://crash.example"))
    site_store.add(FakeSite(id=2, url="https://fine.example"))
    fake_probe.crash_urls.add("https://crash.example")
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    report = await scheduler.run_tick(T0)

    assert report.checked == 2
    crashed = log_store.for_site(1)[0]
    assert crashed.status == "DOWN"
    assert crashed.response_time >= 0
    assert log_store.for_site(2)[0].status == "UP"
    assert scheduler.in_flight_checks == 0


@pytest.mark.asyncio
async def test_append_failure_is_isolated(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://a.example"))
    site_store.add(FakeSite(id=2, url="https://b.example"))
    log_store.fail_append_for.add(1)
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    report = await scheduler.run_tick(T0)

    assert report.record_failures == 1
    # no log, so last_checked stays unset and the site is retried next tick
    assert site_store.sites[1].last_checked is None
    assert site_store.sites[2].last_checked == T0
    assert len(log_store.for_site(2)) == 1


@pytest.mark.asyncio
async def test_update_failure_is_isolated(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://a.example"))
    site_store.fail_update_for.add(1)
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    report = await scheduler.run_tick(T0)

    assert report.record_failures == 1
    assert len(log_store.for_site(1)) == 1


@pytest.mark.asyncio
async def test_listing_failure_skips_tick(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://a.example"))
    site_store.fail_list = True
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    report = await scheduler.run_tick(T0)
    assert report.active == 0
    assert scheduler.tick_count == 1

    site_store.fail_list = False
    report = await scheduler.run_tick(T0)
    assert report.checked == 1


@pytest.mark.asyncio
async def test_site_in_flight_is_not_probed_twice(site_store, log_store, monitoring_settings) -> None:
    release = asyncio.Event()
    calls = []

    class SlowProbe:
        async def probe(self, url: str) -> ProbeResult:
            calls.append(url)
            await release.wait()
            return ProbeResult(CheckStatus.UP, 5, 200)

    site_store.add(FakeSite(id=1, url="https://slow.example"))
    scheduler = _scheduler(site_store, log_store, SlowProbe(), monitoring_settings)

    first = asyncio.create_task(scheduler.run_tick(T0))
    await asyncio.sleep(0.01)
    assert scheduler.in_flight_checks == 1

    overlapping = await scheduler.run_tick(T0 + timedelta(seconds=30))
    assert overlapping.skipped_in_flight == 1

    release.set()
    await first
    assert calls == ["https://slow.example"]
    assert scheduler.in_flight_checks == 0


@pytest.mark.asyncio
async def test_concurrency_is_bounded(site_store, log_store, monitoring_settings) -> None:
    monitoring_settings.max_concurrent_probes = 2
    active = 0
    peak = 0

    class CountingProbe:
        async def probe(self, url: str) -> ProbeResult:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return ProbeResult(CheckStatus.UP, 20, 200)

    for i in range(1, 7):
        site_store.add(FakeSite(id=i, url=f"https://s{i}.example"))
    scheduler = _scheduler(site_store, log_store, CountingProbe(), monitoring_settings)

    report = await scheduler.run_tick(T0)

    assert report.checked == 6
    assert peak == 2


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_start_ticks_immediately_and_stop(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://a.example"))
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    await scheduler.start()
    assert scheduler.is_running
    await asyncio.sleep(0.12)
    await scheduler.stop()

    assert not scheduler.is_running
    assert scheduler.tick_count >= 2
    # clock is frozen, so the site is only due on the first tick
    assert fake_probe.calls == ["https://a.example"]
    assert scheduler.get_stats()["last_tick_at"] == T0.isoformat()


@pytest.mark.asyncio
async def test_closed_scheduler_rejects_use(site_store, log_store, fake_probe, monitoring_settings) -> None:
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)
    await scheduler.close()

    with pytest.raises(SchedulerStateError):
        await scheduler.start()
    with pytest.raises(SchedulerStateError):
        await scheduler.run_tick(T0)


@pytest.mark.asyncio
async def test_cancelled_tick_releases_sites(site_store, log_store, fake_probe, monitoring_settings) -> None:
    site_store.add(FakeSite(id=1, url="https://a.example"))
    scheduler = _scheduler(site_store, log_store, fake_probe, monitoring_settings)

    tick = asyncio.create_task(scheduler.run_tick(T0))
    await asyncio.sleep(0)
    tick.cancel()
    with pytest.raises(asyncio.CancelledError):
        await tick

    assert scheduler.in_flight_checks == 0
    report = await scheduler.run_tick(T0 + timedelta(hours=1))
    assert report.skipped_in_flight == 0
    assert report.checked == 1
