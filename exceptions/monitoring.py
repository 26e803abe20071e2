"""
Monitoring Exception Classes for Site Sentinel

Probe failures are never raised; they become DOWN logs. These
exceptions cover misuse of the scheduler itself.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import SentinelException


class MonitoringException(SentinelException):
    """Base class for check scheduler errors."""

    default_error_code = 4000
    default_recoverable = True


class SchedulerStateError(MonitoringException):
    """
    Scheduler State Error

    Raised when the scheduler is asked to run after it was shut down.
    """

    default_error_code = 4001

    def __init__(
        self,
        message: str = "Scheduler is not in a runnable state",
        state: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if state:
            self.details["state"] = state
