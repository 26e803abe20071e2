"""
Database Connection Module for Site Sentinel

Manages the async engine, the session factory and table creation
using SQLAlchemy's asyncio extension.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool
from sqlalchemy.exc import SQLAlchemyError

from config.settings import DatabaseSettings, DatabaseType
from database.models import Base
from exceptions import DatabaseConnectionError, DatabaseQueryError
from utils.logger import get_logger


logger = get_logger("Database")


class DatabaseManager:
    """
    Database Manager

    Owns the engine and session factory. One instance is created by the
    application and shared by the repositories.

    Attributes:
        engine: SQLAlchemy async engine
        session_factory: Async session maker
        is_connected: Connection status flag
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self.is_connected: bool = False
        self._lock = asyncio.Lock()

    @property
    def database_url(self) -> str:
        return self._settings.url

    @staticmethod
    def _mask_password(url: str) -> str:
        """Mask the password in a database URL for logging."""
        if "://" not in url:
            return url

        protocol, rest = url.split("://", 1)
        if "@" not in rest:
            return url

        credentials, host_part = rest.split("@", 1)
        if ":" in credentials:
            user, _ = credentials.split(":", 1)
            return f"{protocol}://{user}:****@{host_part}"

        return url

    async def connect(self, create_tables: bool = True) -> None:
        """
        Create the engine and session factory, verify connectivity and
        optionally create missing tables.

        Raises:
            DatabaseConnectionError: If the connection test fails
        """
        async with self._lock:
            if self.is_connected:
                logger.warning("Database already connected")
                return

            url = self.database_url
            logger.info(f"Connecting to database {self._mask_password(url)}")

            try:
                self.engine = create_async_engine(url, **self._get_engine_kwargs())
                self.session_factory = async_sessionmaker(
                    bind=self.engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False
                )

                if self._settings.type == DatabaseType.SQLITE:
                    self._enable_sqlite_foreign_keys()

                await self._test_connection()

                if create_tables:
                    async with self.engine.begin() as conn:
                        await conn.run_sync(Base.metadata.create_all)
                    logger.info("Database tables ensured")

                self.is_connected = True
                logger.info("Database connection established")

            except SQLAlchemyError as e:
                error_msg = f"Failed to connect to database: {e}"
                logger.error(error_msg)
                if self.engine is not None:
                    await self.engine.dispose()
                    self.engine = None
                self.session_factory = None
                raise DatabaseConnectionError(
                    message=error_msg,
                    host=self._settings.host,
                    port=self._settings.port,
                    database=self._settings.name,
                    cause=e
                ) from e

    def _get_engine_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"echo": self._settings.echo}

        if self._settings.type == DatabaseType.SQLITE:
            kwargs["poolclass"] = NullPool
        else:
            kwargs["pool_size"] = self._settings.pool_size
            kwargs["max_overflow"] = self._settings.max_overflow
            kwargs["pool_timeout"] = self._settings.pool_timeout
            kwargs["pool_recycle"] = self._settings.pool_recycle
            kwargs["pool_pre_ping"] = True

        return kwargs

    def _enable_sqlite_foreign_keys(self) -> None:
        """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""

        @event.listens_for(self.engine.sync_engine, "connect")
        def on_connect(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    async def _test_connection(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def disconnect(self) -> None:
        """Dispose of the engine and release pooled connections."""
        async with self._lock:
            if not self.is_connected:
                return

            if self.engine:
                await self.engine.dispose()
                self.engine = None

            self.session_factory = None
            self.is_connected = False
            logger.info("Database disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional scope: committed on success, rolled back
        on failure.

        Yields:
            AsyncSession: Database session

        Raises:
            DatabaseConnectionError: If not connected
            DatabaseQueryError: If a statement fails
        """
        if not self.is_connected or not self.session_factory:
            raise DatabaseConnectionError("Database not connected")

        session = self.session_factory()

        try:
            yield session
            await session.commit()

        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise DatabaseQueryError(
                message=str(e),
                query=getattr(e, "statement", None),
                cause=e,
            ) from e

        except Exception:
            await session.rollback()
            raise

        finally:
            await session.close()

    async def check_connection(self) -> bool:
        """
        Check if database connection is alive.

        Returns:
            True if connection is alive, False otherwise
        """
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (DatabaseConnectionError, DatabaseQueryError) as e:
            logger.error(f"Database connection check failed: {e}")
            return False
