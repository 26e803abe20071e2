"""
============================================================================
SITE SENTINEL - CHECK SCHEDULER
============================================================================
A single coarse-grained loop drives every liveness check. There are no
per-site timers: every tick (30 s by default) the scheduler reads a fresh
snapshot of active sites, picks the ones that are due, probes them and
records the outcome.

    due  <=>  now >= (last_checked or epoch) + interval_minutes

A due site gets one Log row and its last_checked set to the tick's `now`,
not to the probe completion time, so interval arithmetic does not drift by
the probe latency on every cycle. Scheduling jitter of up to one tick is
accepted.

Due sites are fanned out concurrently, bounded by an asyncio.Semaphore.
A tick therefore lasts at most about
    probe_timeout × ceil(due / max_concurrent_probes)
plus repository time. Ticks are sequential; a per-site in-flight set also
prevents a manually driven tick from probing a site that is still being
probed by the loop.

Every site is isolated: a crash inside the probe path is recorded as
DOWN, a repository failure is logged, and neither affects other sites or
future ticks.
============================================================================
"""

import asyncio
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Set

from config.constants import NEVER_CHECKED_EPOCH
from config.settings import MonitoringSettings
from exceptions import SchedulerStateError
from monitoring.interfaces import LogStore, SiteRecord, SiteStore
from monitoring.probe import ProbeExecutor, ProbeResult
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("Scheduler")


# ============================================================================
# TICK REPORT
# ============================================================================

@dataclass
class TickReport:
    """
    Summary of one tick, returned by run_tick() and kept as last_report.

    Attributes
    ----------
    now : datetime
        The tick reference time used for due checks and last_checked.
    active : int
        Active sites in the snapshot.
    due : int
        Sites whose next check time had passed.
    checked : int
        Probes that completed (UP or DOWN).
    up, down : int
        Probe outcomes.
    record_failures : int
        Sites whose log append or last_checked update failed.
    skipped_in_flight : int
        Due sites skipped because a probe for them was still running.
    duration_ms : int
        Wall-clock duration of the tick.
    """
    now: datetime
    active: int = 0
    due: int = 0
    checked: int = 0
    up: int = 0
    down: int = 0
    record_failures: int = 0
    skipped_in_flight: int = 0
    duration_ms: int = 0
    checked_site_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["now"] = self.now.isoformat()
        return data


# ============================================================================
# SCHEDULER
# ============================================================================

class CheckScheduler:
    """
    Periodic check scheduler.

    Usage
    -----
        scheduler = CheckScheduler(site_repo, log_repo, settings=settings.monitoring)
        await scheduler.start()
        # ... later ...
        await scheduler.stop()

    Tests call ``await scheduler.run_tick(now)`` directly instead of
    waiting on the timer.
    """

    def __init__(
        self,
        site_store: SiteStore,
        log_store: LogStore,
        probe_executor: Optional[ProbeExecutor] = None,
        settings: Optional[MonitoringSettings] = None,
        clock: Callable[[], datetime] = TimeHelper.get_utc_now,
    ):
        """
        Parameters
        ----------
        site_store : SiteStore
            Source of active sites and sink for last_checked updates.
        log_store : LogStore
            Sink for probe results.
        probe_executor : ProbeExecutor | None
            Defaults to an HTTP ProbeExecutor built from *settings*.
        settings : MonitoringSettings | None
            Tick cadence, concurrency bound and probe options.
        clock : callable
            Returns the current naive-UTC time; injectable for tests.
        """
        self.settings = settings or MonitoringSettings()
        self.site_store = site_store
        self.log_store = log_store
        self.probe_executor = probe_executor or ProbeExecutor(self.settings)
        self._clock = clock

        # --- concurrency control ---
        self._semaphore = asyncio.Semaphore(self.settings.max_concurrent_probes)
        self._tick_interval = self.settings.tick_interval
        self._in_flight: Set[int] = set()

        # --- lifecycle ---
        self._running = False
        self._closed = False
        self._loop_task: Optional[asyncio.Task] = None

        # --- diagnostics ---
        self.tick_count = 0
        self.last_tick_at: Optional[datetime] = None
        self.last_report: Optional[TickReport] = None

        logger.info(
            f"CheckScheduler created — tick={self._tick_interval}s, "
            f"probe_timeout={self.settings.probe_timeout}s, "
            f"max_concurrent={self.settings.max_concurrent_probes}"
        )

    # ------------------------------------------------------------------
    # DUE CALCULATION
    # ------------------------------------------------------------------

    @staticmethod
    def next_check_due(site: SiteRecord) -> datetime:
        """last_checked (or the epoch if never checked) + interval."""
        last_checked = site.last_checked
        if last_checked is None:
            last_checked = NEVER_CHECKED_EPOCH
        else:
            last_checked = TimeHelper.to_naive_utc(last_checked)
        return last_checked + timedelta(minutes=site.interval_minutes)

    @classmethod
    def is_due(cls, site: SiteRecord, now: datetime) -> bool:
        return TimeHelper.to_naive_utc(now) >= cls.next_check_due(site)

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background tick loop."""
        if self._closed:
            raise SchedulerStateError("Cannot start a closed scheduler", state="closed")
        if self._running:
            logger.warning("CheckScheduler is already running")
            return

        self._running = True
        self._loop_task = asyncio.create_task(self._run_loop(), name="check-scheduler")
        logger.info("✓ CheckScheduler started")

    async def stop(self) -> None:
        """
        Stop the tick loop. Probes in flight are cancelled; each probe
        closes its HTTP client on cancellation.
        """
        self._running = False
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
        logger.info("✓ CheckScheduler stopped")

    async def close(self) -> None:
        """Stop for good; start() and run_tick() raise afterwards."""
        await self.stop()
        self._closed = True

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight_checks(self) -> int:
        return len(self._in_flight)

    # ------------------------------------------------------------------
    # MAIN LOOP
    # ------------------------------------------------------------------

    async def _run_loop(self) -> None:
        """
        Tick at a fixed cadence. A tick that overruns the cadence delays
        the next one; missed ticks are not replayed.
        """
        logger.info("[Scheduler] Tick loop started")
        next_tick = time.monotonic()

        while self._running:
            try:
                await self.run_tick()
            except asyncio.CancelledError:
                break
            except Exception:
                # run_tick isolates sites already; this only guards the loop
                logger.exception("[Scheduler] Unhandled error in tick")

            next_tick += self._tick_interval
            now_mono = time.monotonic()
            if next_tick < now_mono:
                next_tick = now_mono

            try:
                await asyncio.sleep(next_tick - now_mono)
            except asyncio.CancelledError:
                break

        logger.info("[Scheduler] Tick loop exited")

    # ------------------------------------------------------------------
    # TICK
    # ------------------------------------------------------------------

    async def run_tick(self, now: Optional[datetime] = None) -> TickReport:
        """
        Run one tick: snapshot active sites, probe the due ones, record.

        Parameters
        ----------
        now : datetime | None
            Tick reference time; defaults to the scheduler clock.
        """
        if self._closed:
            raise SchedulerStateError("Cannot tick a closed scheduler", state="closed")

        started = time.perf_counter()
        now = TimeHelper.to_naive_utc(now or self._clock())
        report = TickReport(now=now)

        try:
            sites = list(await self.site_store.list_active_sites())
        except Exception:
            logger.exception("[Scheduler] Could not load active sites; skipping tick")
            return self._finish_tick(report, started)

        report.active = len(sites)

        to_check: List[SiteRecord] = []
        for site in sites:
            if not site.is_active or not self.is_due(site, now):
                continue
            report.due += 1
            if site.id in self._in_flight:
                report.skipped_in_flight += 1
                logger.warning(f"[Scheduler] Site {site.id} still being probed; skipping this tick")
                continue
            # Claimed before any await so an overlapping tick cannot take it
            self._in_flight.add(site.id)
            to_check.append(site)

        if to_check:
            logger.debug(f"[Scheduler] {len(to_check)} of {report.active} active site(s) due")
            try:
                outcomes = await asyncio.gather(
                    *(self._check_site(site, now, report) for site in to_check),
                    return_exceptions=True,
                )
            finally:
                # A cancelled tick may cancel checks before they start
                self._in_flight.difference_update(site.id for site in to_check)
            for site, outcome in zip(to_check, outcomes):
                if isinstance(outcome, Exception):
                    logger.opt(exception=outcome).error(
                        f"[Scheduler] Check for site {site.id} raised"
                    )

        return self._finish_tick(report, started)

    def _finish_tick(self, report: TickReport, started: float) -> TickReport:
        report.duration_ms = TimeHelper.elapsed_ms(started)
        self.tick_count += 1
        self.last_tick_at = report.now
        self.last_report = report

        if report.due:
            logger.info(
                f"[Scheduler] Tick done — due={report.due}, up={report.up}, "
                f"down={report.down}, record_failures={report.record_failures}, "
                f"{report.duration_ms}ms"
            )
        return report

    # ------------------------------------------------------------------
    # SINGLE SITE
    # ------------------------------------------------------------------

    async def _check_site(self, site: SiteRecord, now: datetime, report: TickReport) -> None:
        """Probe one site and record the result. Never raises."""
        try:
            async with self._semaphore:
                result = await self._probe_site(site)

            report.checked += 1
            report.checked_site_ids.append(site.id)
            if result.is_up:
                report.up += 1
            else:
                report.down += 1

            try:
                await self.log_store.append_log(site.id, result.status, result.response_time_ms, now)
                await self.site_store.update_last_checked(site.id, now)
            except Exception:
                report.record_failures += 1
                logger.exception(f"[Scheduler] Failed to record result for site {site.id} ({site.url})")
        finally:
            self._in_flight.discard(site.id)

    async def _probe_site(self, site: SiteRecord) -> ProbeResult:
        """
        Run the probe, turning any escaped exception into a DOWN result
        with the time spent so far.
        """
        start = time.perf_counter()
        try:
            return await self.probe_executor.probe(site.url)
        except Exception as e:
            logger.exception(f"[Scheduler] Probe for site {site.id} ({site.url}) crashed")
            return ProbeResult.down(
                TimeHelper.elapsed_ms(start),
                f"Probe error: {type(e).__name__}: {str(e)[:200]}",
            )

    # ------------------------------------------------------------------
    # DIAGNOSTICS
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        """Snapshot of scheduler state for the health endpoint."""
        return {
            "running": self._running,
            "tick_interval_seconds": self._tick_interval,
            "tick_count": self.tick_count,
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "in_flight_checks": self.in_flight_checks,
            "last_tick": self.last_report.to_dict() if self.last_report else None,
        }
