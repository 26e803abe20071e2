"""
============================================================================
SITE SENTINEL - MAIN APPLICATION
============================================================================
Runs the background site checker as a standalone service.

Startup Order
-------------
1.  Load settings & configure logging
2.  Connect the DatabaseManager (create tables if needed)
3.  Build repositories, the ProbeExecutor and the CheckScheduler
4.  Start the CheckScheduler tick loop
5.  Start the HealthServer (non-critical)

Shutdown Order (reverse)
-------------------------
On SIGINT or SIGTERM:
    stop health server → close scheduler (cancels in-flight probes) →
    disconnect DB → exit

License: MIT
============================================================================
"""

import asyncio
import signal
import sys
from typing import Optional

from config.settings import Settings, get_settings
from database.connection import DatabaseManager
from database.repositories import LogRepository, SiteRepository
from exceptions import ConfigurationError, InitializationError, SentinelException
from monitoring.health import HealthServer
from monitoring.probe import ProbeExecutor
from monitoring.scheduler import CheckScheduler
from monitoring.stats import StatsAggregator
from utils.logger import get_logger, setup_logging


logger = get_logger("Main")


# ============================================================================
# APPLICATION CLASS
# ============================================================================

class SentinelApplication:
    """
    Top-level application orchestrator.

    Owns every subsystem and is the single place that knows the startup /
    shutdown order.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

        # --- subsystems (populated during startup) ---
        self.db_manager: Optional[DatabaseManager] = None
        self.site_repository: Optional[SiteRepository] = None
        self.log_repository: Optional[LogRepository] = None
        self.stats: Optional[StatsAggregator] = None
        self.scheduler: Optional[CheckScheduler] = None
        self.health_server: Optional[HealthServer] = None

        # --- lifecycle ---
        self._stop_event = asyncio.Event()

    # ==================================================================
    # PHASE 1 — DATABASE
    # ==================================================================

    async def _init_database(self) -> None:
        logger.info("── Phase 1: Database ─────────────────────────────")
        self.db_manager = DatabaseManager(self.settings.database)
        await self.db_manager.connect()

        self.site_repository = SiteRepository(self.db_manager)
        self.log_repository = LogRepository(self.db_manager)
        logger.info(f"  ✓ Connected to {self.settings.database.type.value}")

    # ==================================================================
    # PHASE 2 — SCHEDULER
    # ==================================================================

    async def _init_scheduler(self) -> None:
        logger.info("── Phase 2: Check Scheduler ──────────────────────")
        monitoring = self.settings.monitoring
        self.stats = StatsAggregator(
            self.log_repository,
            default_window=monitoring.dashboard_window,
            analysis_window=monitoring.analysis_window,
        )
        self.scheduler = CheckScheduler(
            site_store=self.site_repository,
            log_store=self.log_repository,
            probe_executor=ProbeExecutor(monitoring),
            settings=monitoring,
        )
        await self.scheduler.start()

    # ==================================================================
    # PHASE 3 — HEALTH SERVER
    # ==================================================================

    async def _init_health(self) -> None:
        logger.info("── Phase 3: Health Server ────────────────────────")
        if not self.settings.health.enabled:
            logger.info("  Health server disabled")
            return

        server = HealthServer(
            self.settings.health,
            self.scheduler,
            app_name=self.settings.app_name,
            app_version=self.settings.app_version,
        )
        try:
            await server.start()
        except OSError as e:
            raise InitializationError(
                f"Health server could not bind {self.settings.health.host}:{self.settings.health.port}",
                component="health_server",
                cause=e,
            )
        self.health_server = server

    # ==================================================================
    # FULL STARTUP SEQUENCE
    # ==================================================================

    async def startup(self) -> bool:
        """
        Execute the complete startup sequence.
        Returns False (and logs errors) if a critical phase fails.
        """
        logger.info("=" * 74)
        logger.info(f"  STARTING {self.settings.app_name} v{self.settings.app_version} …")
        logger.info("=" * 74)

        try:
            await self._init_database()
            await self._init_scheduler()
        except SentinelException as e:
            logger.error(f"  ✗ Startup failed: {e.log_format()}")
            return False

        # Non-critical: the checker runs without its health endpoint
        try:
            await self._init_health()
        except InitializationError as e:
            logger.warning(f"  ⚠ {e.log_format()} — continuing without it")

        logger.info("=" * 74)
        logger.info("  ✓ ALL SYSTEMS OPERATIONAL")
        logger.info(
            f"  Tick every {self.settings.monitoring.tick_interval:g}s, "
            f"probe timeout {self.settings.monitoring.probe_timeout:g}s, "
            f"{self.settings.monitoring.max_concurrent_probes} concurrent"
        )
        logger.info("=" * 74)
        return True

    # ==================================================================
    # SHUTDOWN SEQUENCE
    # ==================================================================

    async def shutdown(self) -> None:
        """
        Graceful shutdown in reverse order.
        A failure in one subsystem does not prevent the others from
        cleaning up.
        """
        logger.info("=" * 74)
        logger.info("  SHUTTING DOWN …")
        logger.info("=" * 74)

        if self.health_server:
            try:
                await self.health_server.stop()
            except Exception:
                logger.exception("  ✗ HealthServer stop error")

        if self.scheduler:
            try:
                await self.scheduler.close()
            except Exception:
                logger.exception("  ✗ CheckScheduler stop error")

        if self.db_manager:
            try:
                await self.db_manager.disconnect()
            except Exception:
                logger.exception("  ✗ Database close error")

        logger.info("  ✓ SHUTDOWN COMPLETE")

    # ==================================================================
    # RUN
    # ==================================================================

    def request_stop(self) -> None:
        logger.info("  ⚡ Signal received — initiating graceful shutdown…")
        self._stop_event.set()

    async def run(self) -> None:
        """Block until a stop is requested."""
        await self._stop_event.wait()


# ============================================================================
# SIGNAL HANDLER SETUP
# ============================================================================

def _install_signal_handlers(app: SentinelApplication) -> None:
    """
    Install SIGTERM / SIGINT handlers so the service shuts down gracefully
    when killed by the OS.
    """
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, app.request_stop)
        except (NotImplementedError, OSError):
            # Not supported on Windows; KeyboardInterrupt still applies
            pass


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

async def main() -> int:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error(f"  ✗ {e.log_format()}")
        return 1
    setup_logging(settings.logging)

    app = SentinelApplication(settings)
    _install_signal_handlers(app)

    try:
        if not await app.startup():
            logger.error("  ✗ Startup failed — exiting")
            return 1
        await app.run()
    finally:
        await app.shutdown()
    return 0


def cli() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
