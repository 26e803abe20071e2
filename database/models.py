"""
============================================================================
SITE SENTINEL - DATABASE MODELS
============================================================================
SQLAlchemy ORM models for monitored sites and their check logs.
============================================================================
"""

import enum
from typing import Any, Dict

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Index,
    CheckConstraint
)
from sqlalchemy.orm import relationship, declarative_base

from utils.helpers import TimeHelper


Base = declarative_base()


# ============================================================================
# ENUMERATIONS
# ============================================================================

class CheckStatus(str, enum.Enum):
    """Outcome of a probe. UNKNOWN is only used by derived stats."""
    UP = "UP"
    DOWN = "DOWN"
    UNKNOWN = "UNKNOWN"


class UserRole(str, enum.Enum):
    """User role enumeration"""
    ADMIN = "admin"
    USER = "user"


# ============================================================================
# USER MODEL
# ============================================================================

class User(Base):
    """
    Owner of monitored sites. Credentials live with the auth layer.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    created_at = Column(DateTime, nullable=False, default=TimeHelper.get_utc_now)

    sites = relationship("Site", back_populates="user")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


# ============================================================================
# SITE MODEL
# ============================================================================

class Site(Base):
    """
    A monitored endpoint.

    last_checked is NULL until the scheduler has probed the site once.
    """
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    url = Column(String(2048), nullable=False)
    interval_minutes = Column(Integer, nullable=False, default=5)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    last_checked = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=TimeHelper.get_utc_now)

    user = relationship("User", back_populates="sites")
    logs = relationship(
        "Log",
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("interval_minutes >= 1", name="ck_sites_interval_positive"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "url": self.url,
            "interval_minutes": self.interval_minutes,
            "is_active": self.is_active,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Site id={self.id} url={self.url!r} every={self.interval_minutes}m>"


# ============================================================================
# LOG MODEL
# ============================================================================

class Log(Base):
    """
    One immutable probe result.
    """
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(
        Integer,
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(String(10), nullable=False)
    response_time = Column(Integer, nullable=False)  # ms
    created_at = Column(DateTime, nullable=False, default=TimeHelper.get_utc_now)

    site = relationship("Site", back_populates="logs")

    __table_args__ = (
        Index("idx_logs_site_created", "site_id", "created_at"),
        CheckConstraint("response_time >= 0", name="ck_logs_response_time_non_negative"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "site_id": self.site_id,
            "status": self.status,
            "response_time": self.response_time,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
