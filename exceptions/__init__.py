"""
Exceptions Package for Site Sentinel

Provides the exception hierarchy used for error handling
throughout the application.
"""

from exceptions.base import (
    SentinelException,
    ConfigurationError,
    InitializationError
)

from exceptions.database import (
    DatabaseException,
    DatabaseConnectionError,
    DatabaseQueryError,
    SiteNotFoundError
)

from exceptions.validation import (
    ValidationException,
    InvalidURLError,
    InvalidIntervalError
)

from exceptions.monitoring import (
    MonitoringException,
    SchedulerStateError
)

__all__ = [
    # Base exceptions
    "SentinelException",
    "ConfigurationError",
    "InitializationError",

    # Database exceptions
    "DatabaseException",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "SiteNotFoundError",

    # Validation exceptions
    "ValidationException",
    "InvalidURLError",
    "InvalidIntervalError",

    # Monitoring exceptions
    "MonitoringException",
    "SchedulerStateError"
]
