"""
Database Exception Classes for Site Sentinel

Provides specialized exceptions for database-related errors
including connection issues, query errors, and missing records.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from exceptions.base import SentinelException


class DatabaseException(SentinelException):
    """
    Base Database Exception

    Parent class for all database-related exceptions.
    """

    default_error_code = 2000
    default_recoverable = False

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize database exception.

        Args:
            message: Error message
            query: The SQL query that caused the error (sanitized)
            table: The database table involved
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if query:
            self.details["query"] = self._sanitize_query(query)

        if table:
            self.details["table"] = table

    @staticmethod
    def _sanitize_query(query: str) -> str:
        """Strip literal values out of a SQL query before it is logged."""
        query = re.sub(r"'[^']*'", "'***'", query)
        query = re.sub(r"= \d+", "= ***", query)

        if len(query) > 500:
            query = query[:500] + "..."

        return query


class DatabaseConnectionError(DatabaseException):
    """
    Database Connection Error

    Raised when unable to establish or maintain database connection.
    """

    default_error_code = 2001

    def __init__(
        self,
        message: str = "Unable to connect to database",
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if host:
            self.details["host"] = host

        if port:
            self.details["port"] = port

        if database:
            self.details["database"] = database


class DatabaseQueryError(DatabaseException):
    """
    Database Query Error

    Raised when a statement fails inside a session scope.
    """

    default_error_code = 2002

    def __init__(
        self,
        message: str = "Database query failed",
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)


class SiteNotFoundError(DatabaseException):
    """
    Site Not Found Error

    Raised when an edit or delete targets a site id that does not exist.
    """

    default_error_code = 2003
    default_recoverable = True

    def __init__(
        self,
        message: str = "Site not found",
        site_id: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, table="sites", **kwargs)

        if site_id is not None:
            self.details["site_id"] = str(site_id)
