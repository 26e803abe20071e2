"""
Validation Exception Classes for Site Sentinel

Raised when site configuration supplied by a user action is rejected.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import SentinelException


class ValidationException(SentinelException):
    """
    Base Validation Exception

    Parent class for all validation-related exceptions.
    """

    default_error_code = 3000
    default_recoverable = True

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize validation exception.

        Args:
            message: Error message
            field: The field that failed validation
            value: The invalid value (sanitized)
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if field:
            self.details["field"] = field

        if value is not None:
            self.details["value"] = self._sanitize_value(value)

    @staticmethod
    def _sanitize_value(value: Any) -> str:
        str_value = str(value)

        # Truncate long values
        if len(str_value) > 100:
            str_value = str_value[:100] + "..."

        return str_value


class InvalidURLError(ValidationException):
    """
    Invalid URL Error

    Raised when a site URL is not an absolute http(s) URL.
    """

    default_error_code = 3001

    def __init__(
        self,
        message: str = "Invalid URL format",
        url: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="url", value=url, **kwargs)

        if reason:
            self.details["reason"] = reason


class InvalidIntervalError(ValidationException):
    """
    Invalid Interval Error

    Raised when a check interval is not a whole number of minutes >= 1.
    """

    default_error_code = 3002

    def __init__(
        self,
        message: str = "Invalid interval",
        interval: Optional[Any] = None,
        min_interval: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="interval_minutes", value=interval, **kwargs)

        if min_interval is not None:
            self.details["min_interval"] = min_interval
