"""
============================================================================
SITE SENTINEL - HEALTH SERVER
============================================================================
A lightweight aiohttp server that lets an outside monitor check the
monitor itself:

    GET /          → 200 "OK"    (process liveness)
    GET /ping      → 200 "pong"
    GET /health    → 200 JSON while the scheduler loop is running,
                     503 JSON once it has stopped

The /health body carries the scheduler counters (tick count, last tick,
in-flight checks, last tick report).

License: MIT
============================================================================
"""

import time
from typing import Any, Dict, Optional

from aiohttp import web

from config.settings import HealthSettings
from monitoring.scheduler import CheckScheduler
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("HealthServer")


class HealthServer:
    """
    aiohttp server exposing liveness endpoints for the sentinel.

    Attributes
    ----------
    app : aiohttp.web.Application
    _runner : aiohttp.web.AppRunner
    _site : aiohttp.web.TCPSite
    _start_time : float          — epoch seconds when the server started
    _request_count : int         — total requests served
    """

    def __init__(
        self,
        settings: HealthSettings,
        scheduler: CheckScheduler,
        app_name: str = "Site Sentinel",
        app_version: str = "1.0.0",
    ):
        self.settings = settings
        self.scheduler = scheduler
        self.app_name = app_name
        self.app_version = app_version

        self.app = web.Application()
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._start_time: float = time.time()
        self._request_count: int = 0

        self.app.router.add_get("/", self._handle_root)
        self.app.router.add_get("/ping", self._handle_ping)
        self.app.router.add_get("/health", self._handle_health)

    async def start(self) -> None:
        """Bind and start serving."""
        self._start_time = time.time()
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.settings.host, self.settings.port)
        await self._site.start()
        logger.info(f"✓ HealthServer listening on {self.settings.host}:{self.settings.port}")

    async def stop(self) -> None:
        """Gracefully shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
        logger.info("✓ HealthServer stopped")

    # ------------------------------------------------------------------
    # ROUTE HANDLERS
    # ------------------------------------------------------------------

    async def _handle_root(self, request: web.Request) -> web.Response:
        self._request_count += 1
        return web.Response(text="OK", status=200)

    async def _handle_ping(self, request: web.Request) -> web.Response:
        self._request_count += 1
        return web.Response(text="pong", status=200)

    async def _handle_health(self, request: web.Request) -> web.Response:
        """GET /health — scheduler state; 503 when the loop is not running."""
        self._request_count += 1
        healthy = self.scheduler.is_running
        return web.json_response(self.build_health(healthy), status=200 if healthy else 503)

    def build_health(self, healthy: bool) -> Dict[str, Any]:
        uptime_seconds = int(time.time() - self._start_time)
        return {
            "status": "healthy" if healthy else "unhealthy",
            "uptime_seconds": uptime_seconds,
            "uptime_human": TimeHelper.seconds_to_human_readable(uptime_seconds),
            "requests_served": self._request_count,
            "timestamp": TimeHelper.get_utc_now().isoformat(),
            "app_name": self.app_name,
            "app_version": self.app_version,
            "scheduler": self.scheduler.get_stats(),
        }
