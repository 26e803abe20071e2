"""
============================================================================
SITE SENTINEL - REPOSITORIES
============================================================================
Data access for users, sites and check logs. The check scheduler and the
stats aggregator only use the operations declared in
monitoring.interfaces; the remaining site operations back the user-facing
CRUD layer.

Errors are not swallowed here: a failed statement surfaces as
DatabaseQueryError so the caller decides how to isolate it.
============================================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select, update

from database.connection import DatabaseManager
from database.models import CheckStatus, Log, Site, User, UserRole
from exceptions import SiteNotFoundError, ValidationException
from utils.helpers import TimeHelper
from utils.logger import get_logger
from utils.validators import DataValidator, URLValidator


# ============================================================================
# BASE REPOSITORY
# ============================================================================

class BaseRepository:
    """
    Shared plumbing for repositories.
    """

    def __init__(self, db_manager: DatabaseManager):
        """
        Initialize repository.

        Args:
            db_manager: DatabaseManager instance
        """
        self.db = db_manager
        self.logger = get_logger(self.__class__.__name__)

    async def get_by_id(self, model_class, record_id: int):
        async with self.db.session() as session:
            return await session.get(model_class, record_id)


# ============================================================================
# USER REPOSITORY
# ============================================================================

class UserRepository(BaseRepository):
    """Minimal user access: sites need an owner row to reference."""

    async def create_user(self, email: str, role: UserRole = UserRole.USER) -> User:
        user = User(email=email, role=UserRole(role).value)
        async with self.db.session() as session:
            session.add(user)
            await session.flush()
            await session.refresh(user)
        self.logger.info(f"Created user {user.id} ({email})")
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        async with self.db.session() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()


# ============================================================================
# SITE REPOSITORY
# ============================================================================

class SiteRepository(BaseRepository):
    """Repository for Site model operations."""

    EDITABLE_FIELDS = frozenset({"name", "url", "interval_minutes", "is_active"})

    async def list_active_sites(self) -> List[Site]:
        """Snapshot of every site eligible for scheduling."""
        async with self.db.session() as session:
            result = await session.execute(
                select(Site).where(Site.is_active.is_(True)).order_by(Site.id)
            )
            return list(result.scalars().all())

    async def get_site(self, site_id: int) -> Optional[Site]:
        return await self.get_by_id(Site, site_id)

    async def get_sites_by_user(self, user_id: int) -> List[Site]:
        """All sites owned by a user, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(Site)
                .where(Site.user_id == user_id)
                .order_by(Site.created_at.desc(), Site.id.desc())
            )
            return list(result.scalars().all())

    async def create_site(
        self,
        user_id: int,
        name: str,
        url: str,
        interval_minutes: int = 5,
        is_active: bool = True,
    ) -> Site:
        """
        Validate and insert a new site. last_checked starts as NULL so the
        next scheduler tick probes it.
        """
        site = Site(
            user_id=user_id,
            name=DataValidator.validate_name(name),
            url=URLValidator.validate(url),
            interval_minutes=DataValidator.validate_interval(interval_minutes),
            is_active=bool(is_active),
            last_checked=None,
        )

        async with self.db.session() as session:
            session.add(site)
            await session.flush()
            await session.refresh(site)

        self.logger.info(f"Created site {site.id} ({site.url}, every {site.interval_minutes}m)")
        return site

    async def update_site(self, site_id: int, **changes: Any) -> Site:
        """
        Apply a user edit to name / url / interval_minutes / is_active.

        Raises:
            ValidationException: unknown field or invalid value
            SiteNotFoundError: no site with this id
        """
        unknown = set(changes) - self.EDITABLE_FIELDS
        if unknown:
            raise ValidationException(
                f"Fields cannot be edited: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )

        values: Dict[str, Any] = {}
        if "name" in changes:
            values["name"] = DataValidator.validate_name(changes["name"])
        if "url" in changes:
            values["url"] = URLValidator.validate(changes["url"])
        if "interval_minutes" in changes:
            values["interval_minutes"] = DataValidator.validate_interval(changes["interval_minutes"])
        if "is_active" in changes:
            values["is_active"] = bool(changes["is_active"])

        async with self.db.session() as session:
            site = await session.get(Site, site_id)
            if site is None:
                raise SiteNotFoundError(site_id=site_id)

            for key, value in values.items():
                setattr(site, key, value)

            await session.flush()
            await session.refresh(site)

        self.logger.info(f"Updated site {site_id}: {sorted(values)}")
        return site

    async def delete_site(self, site_id: int) -> None:
        """
        Delete a site and, first, every log that references it.

        Raises:
            SiteNotFoundError: no site with this id
        """
        async with self.db.session() as session:
            site = await session.get(Site, site_id)
            if site is None:
                raise SiteNotFoundError(site_id=site_id)

            result = await session.execute(delete(Log).where(Log.site_id == site_id))
            await session.execute(delete(Site).where(Site.id == site_id))

        self.logger.info(f"Deleted site {site_id} and {result.rowcount} log(s)")

    async def update_last_checked(self, site_id: int, timestamp: datetime) -> None:
        async with self.db.session() as session:
            await session.execute(
                update(Site)
                .where(Site.id == site_id)
                .values(last_checked=TimeHelper.to_naive_utc(timestamp))
            )


# ============================================================================
# LOG REPOSITORY
# ============================================================================

class LogRepository(BaseRepository):
    """Repository for Log model operations. Logs are insert-only."""

    async def append_log(
        self,
        site_id: int,
        status: CheckStatus,
        response_time_ms: int,
        timestamp: Optional[datetime] = None,
    ) -> Log:
        status = CheckStatus(status)
        if status is CheckStatus.UNKNOWN:
            raise ValidationException("A log status must be UP or DOWN", field="status", value=status.value)

        log = Log(
            site_id=site_id,
            status=status.value,
            response_time=max(0, int(response_time_ms)),
            created_at=TimeHelper.to_naive_utc(timestamp) if timestamp else TimeHelper.get_utc_now(),
        )

        async with self.db.session() as session:
            session.add(log)
            await session.flush()
            await session.refresh(log)

        return log

    async def list_recent_logs(self, site_id: int, limit: int) -> Sequence[Log]:
        """Most recent `limit` logs for a site, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(Log)
                .where(Log.site_id == site_id)
                .order_by(Log.created_at.desc(), Log.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())
