"""
============================================================================
SITE SENTINEL - PROBE EXECUTOR
============================================================================
One bounded-time liveness check against a single URL.

The probe sends a GET (some servers reject HEAD) with the sentinel
User-Agent and classifies the outcome as UP when the status code is in
the 2xx/3xx range. Everything else (4xx/5xx, refused connection, DNS or
TLS failure, timeout) is DOWN. Elapsed wall-clock time is reported in
every case.

The timeout is enforced twice: httpx gets it as its client timeout, and
the whole request runs under asyncio.wait_for so the request task is
cancelled, and its client closed, before probe() returns.
============================================================================
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from config.settings import MonitoringSettings
from database.models import CheckStatus
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("Probe")


# ============================================================================
# PROBE RESULT
# ============================================================================

@dataclass(frozen=True)
class ProbeResult:
    """
    Value object carrying a single probe outcome back to the scheduler.
    status_code and error are diagnostic only; they are not persisted.
    """
    status: CheckStatus
    response_time_ms: int
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_up(self) -> bool:
        return self.status is CheckStatus.UP

    @classmethod
    def down(cls, response_time_ms: int, error: str, status_code: Optional[int] = None) -> "ProbeResult":
        return cls(
            status=CheckStatus.DOWN,
            response_time_ms=max(0, response_time_ms),
            status_code=status_code,
            error=error,
        )


def classify_status_code(status_code: int) -> CheckStatus:
    """UP for 2xx and 3xx, DOWN otherwise."""
    return CheckStatus.UP if 200 <= status_code < 400 else CheckStatus.DOWN


# ============================================================================
# PROBE EXECUTOR
# ============================================================================

class ProbeExecutor:
    """
    Performs HTTP GET probes using an httpx async client.

    A fresh client is opened per probe so a cancelled request can never
    leave a pooled connection behind.
    """

    def __init__(
        self,
        settings: MonitoringSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Parameters
        ----------
        settings : MonitoringSettings
            Timeout, user agent, redirect and TLS options.
        transport : httpx.AsyncBaseTransport | None
            Overrides the network transport (used by tests).
        """
        self.timeout = settings.probe_timeout
        self.user_agent = settings.user_agent
        self.follow_redirects = settings.follow_redirects
        self.verify_ssl = settings.verify_ssl
        self._transport = transport

    async def probe(self, url: str) -> ProbeResult:
        """
        Probe *url*. Never raises; every failure becomes a DOWN result.
        """
        start = time.perf_counter()

        try:
            status_code = await asyncio.wait_for(self._fetch_status(url), timeout=self.timeout)

        except asyncio.TimeoutError:
            result = ProbeResult.down(
                TimeHelper.elapsed_ms(start),
                f"Timed out after {self.timeout:g}s",
            )
        except httpx.TimeoutException as e:
            result = ProbeResult.down(
                TimeHelper.elapsed_ms(start),
                f"{type(e).__name__}: timed out after {self.timeout:g}s",
            )
        except httpx.ConnectError as e:
            result = ProbeResult.down(
                TimeHelper.elapsed_ms(start),
                f"Connection error: {str(e)[:200]}",
            )
        except httpx.HTTPError as e:
            result = ProbeResult.down(
                TimeHelper.elapsed_ms(start),
                f"{type(e).__name__}: {str(e)[:200]}",
            )
        except Exception as e:
            logger.exception(f"[Probe] Unexpected error probing {url}")
            result = ProbeResult.down(
                TimeHelper.elapsed_ms(start),
                f"Unexpected error: {type(e).__name__}: {str(e)[:200]}",
            )
        else:
            status = classify_status_code(status_code)
            result = ProbeResult(
                status=status,
                response_time_ms=TimeHelper.elapsed_ms(start),
                status_code=status_code,
                error=None if status is CheckStatus.UP else f"HTTP {status_code}",
            )

        if result.is_up:
            logger.debug(f"[Probe] {url} → {result.status_code} in {result.response_time_ms}ms")
        else:
            logger.warning(f"[Probe] {url} DOWN after {result.response_time_ms}ms: {result.error}")

        return result

    async def _fetch_status(self, url: str) -> int:
        """Issue the GET and return the status code without reading the body."""
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=self.follow_redirects,
            verify=self.verify_ssl,
            headers={"User-Agent": self.user_agent},
            limits=httpx.Limits(max_connections=1, max_keepalive_connections=0),
            transport=self._transport,
        ) as client:
            async with client.stream("GET", url) as response:
                return response.status_code
