"""
============================================================================
SITE SENTINEL - VALIDATORS UTILITY
============================================================================
Validation of user-supplied site configuration (URL, interval, name).
============================================================================
"""

from typing import Any
from urllib.parse import urlparse

import validators as external_validators

from config.constants import MIN_INTERVAL_MINUTES
from exceptions import InvalidIntervalError, InvalidURLError, ValidationException


class URLValidator:
    """
    URL validation for monitored sites.
    """

    ALLOWED_SCHEMES = ("http", "https")
    MAX_LENGTH = 2048

    @staticmethod
    def is_valid_url(url: str) -> bool:
        """
        Check if URL is an absolute http(s) URL.

        Args:
            url: URL to validate

        Returns:
            True if valid, False otherwise
        """
        if not isinstance(url, str) or not url or len(url) > URLValidator.MAX_LENGTH:
            return False

        if urlparse(url).scheme.lower() not in URLValidator.ALLOWED_SCHEMES:
            return False

        # validators returns a ValidationError object (falsy) on failure
        return external_validators.url(url, simple_host=True) is True

    @staticmethod
    def validate(url: str) -> str:
        """
        Return the stripped URL or raise InvalidURLError.
        """
        candidate = url.strip() if isinstance(url, str) else url

        if not isinstance(candidate, str) or not candidate:
            raise InvalidURLError("URL is required", url=url, reason="empty")

        if len(candidate) > URLValidator.MAX_LENGTH:
            raise InvalidURLError(url=candidate, reason="too_long")

        if urlparse(candidate).scheme.lower() not in URLValidator.ALLOWED_SCHEMES:
            raise InvalidURLError(
                "URL must start with http:// or https://",
                url=candidate,
                reason="no_scheme",
            )

        if not URLValidator.is_valid_url(candidate):
            raise InvalidURLError(url=candidate, reason="malformed")

        return candidate


class DataValidator:
    """
    General data validation utilities.
    """

    @staticmethod
    def is_valid_interval(interval: Any, min_val: int = MIN_INTERVAL_MINUTES) -> bool:
        """
        Check a check interval in whole minutes.

        Args:
            interval: Interval to validate
            min_val: Minimum allowed interval

        Returns:
            True if valid, False otherwise
        """
        # bool is an int subclass; reject it explicitly
        if isinstance(interval, bool) or not isinstance(interval, int):
            return False
        return interval >= min_val

    @staticmethod
    def validate_interval(interval: Any) -> int:
        if not DataValidator.is_valid_interval(interval):
            raise InvalidIntervalError(
                f"Interval must be a whole number of minutes >= {MIN_INTERVAL_MINUTES}",
                interval=interval,
                min_interval=MIN_INTERVAL_MINUTES,
            )
        return interval

    @staticmethod
    def validate_name(name: Any, max_length: int = 255) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationException("Site name is required", field="name", value=name)

        name = name.strip()
        if len(name) > max_length:
            raise ValidationException(
                f"Site name is longer than {max_length} characters",
                field="name",
                value=name,
            )
        return name
