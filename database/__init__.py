"""
Database Package for Site Sentinel

Provides database connectivity, models, and repositories
for data persistence using SQLAlchemy with async support.
"""

from database.models import (
    Base,
    CheckStatus,
    UserRole,
    User,
    Site,
    Log
)

from database.connection import DatabaseManager

from database.repositories import (
    BaseRepository,
    UserRepository,
    SiteRepository,
    LogRepository
)

__all__ = [
    # Connection
    "DatabaseManager",

    # Models
    "Base",
    "CheckStatus",
    "UserRole",
    "User",
    "Site",
    "Log",

    # Repositories
    "BaseRepository",
    "UserRepository",
    "SiteRepository",
    "LogRepository"
]
