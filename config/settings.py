"""
Settings Module for Site Sentinel

Configuration management using Pydantic Settings.
Supports environment variables, .env files, and runtime configuration.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict
from enum import Enum

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.constants import (
    ANALYSIS_WINDOW,
    DASHBOARD_STATS_WINDOW,
    DEFAULT_USER_AGENT,
    MIN_INTERVAL_MINUTES,
    PROBE_TIMEOUT_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from exceptions import ConfigurationError


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class BaseSettingsConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


class DatabaseSettings(BaseSettingsConfig):
    """
    Database Configuration Settings

    PostgreSQL for deployments, SQLite for development and tests.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore"
    )

    type: DatabaseType = Field(
        default=DatabaseType.SQLITE,
        description="Database type: postgresql or sqlite"
    )

    # PostgreSQL settings
    host: str = Field(
        default="localhost",
        description="Database host address"
    )
    port: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="Database port number"
    )
    name: str = Field(
        default="site_sentinel",
        min_length=1,
        max_length=64,
        description="Database name"
    )
    user: str = Field(
        default="postgres",
        min_length=1,
        max_length=64,
        description="Database username"
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password"
    )

    # SQLite settings
    sqlite_path: Path = Field(
        default=Path("data/site_sentinel.db"),
        description="Path to SQLite database file"
    )

    # Connection pool settings
    pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Connection pool size"
    )
    max_overflow: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum overflow connections"
    )
    pool_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Pool connection timeout in seconds"
    )
    pool_recycle: int = Field(
        default=1800,
        ge=60,
        le=7200,
        description="Connection recycle time in seconds"
    )

    echo: bool = Field(
        default=False,
        description="Echo SQL queries (debug mode)"
    )

    @property
    def url(self) -> str:
        """Generate database URL based on configuration."""
        if self.type == DatabaseType.SQLITE:
            if str(self.sqlite_path) == ":memory:":
                return "sqlite+aiosqlite:///:memory:"
            self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{self.sqlite_path}"

        if self.type == DatabaseType.POSTGRESQL:
            password = self.password.get_secret_value()
            return (
                f"postgresql+asyncpg://{self.user}:{password}"
                f"@{self.host}:{self.port}/{self.name}"
            )

        raise ValueError(f"Unsupported database type: {self.type}")

    @field_validator("sqlite_path")
    @classmethod
    def validate_sqlite_path(cls, v: Path) -> Path:
        """Validate and normalize SQLite path."""
        if str(v) != ":memory:" and not v.suffix:
            v = v.with_suffix(".db")
        return v


class MonitoringSettings(BaseSettingsConfig):
    """
    Check Scheduler and Probe Settings

    The tick cadence and probe timeout default to the fixed values in
    config.constants; they are exposed here so tests and operators can
    shrink them.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_file=".env",
        extra="ignore"
    )

    tick_interval: float = Field(
        default=TICK_INTERVAL_SECONDS,
        gt=0,
        description="Seconds between scheduler ticks"
    )
    probe_timeout: float = Field(
        default=PROBE_TIMEOUT_SECONDS,
        gt=0,
        le=120,
        description="Hard timeout for a single probe in seconds"
    )
    max_concurrent_probes: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Maximum probes in flight within one tick"
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent string sent with every probe"
    )
    follow_redirects: bool = Field(
        default=False,
        description="Follow redirects instead of classifying the 3xx itself"
    )
    verify_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates"
    )
    dashboard_window: int = Field(
        default=DASHBOARD_STATS_WINDOW,
        ge=1,
        le=10000,
        description="Number of recent logs folded into dashboard stats"
    )
    analysis_window: int = Field(
        default=ANALYSIS_WINDOW,
        ge=1,
        le=10000,
        description="Number of recent logs used for charts and log analysis"
    )

    @model_validator(mode="after")
    def validate_cadence(self) -> "MonitoringSettings":
        """The tick cadence may not be coarser than the smallest site interval."""
        if self.tick_interval > MIN_INTERVAL_MINUTES * 60:
            raise ValueError(
                "tick_interval cannot exceed the minimum site interval "
                f"({MIN_INTERVAL_MINUTES * 60}s)"
            )
        return self


class LoggingSettings(BaseSettingsConfig):
    """
    Logging Configuration Settings
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Minimum logging level"
    )
    console_enabled: bool = Field(
        default=True,
        description="Enable console logging"
    )
    console_colored: bool = Field(
        default=True,
        description="Enable colored console output"
    )
    file_enabled: bool = Field(
        default=False,
        description="Enable file logging"
    )
    file_path: Path = Field(
        default=Path("logs/site_sentinel.log"),
        description="Log file path"
    )
    file_rotation: str = Field(
        default="10 MB",
        description="Log rotation size (e.g., '10 MB', '1 day')"
    )
    file_retention: str = Field(
        default="30 days",
        description="Log retention period"
    )
    error_file_enabled: bool = Field(
        default=False,
        description="Write ERROR and above to a separate file"
    )
    error_file_path: Path = Field(
        default=Path("logs/errors.log"),
        description="Error log file path"
    )


class HealthSettings(BaseSettingsConfig):
    """
    Health Server Settings

    A small aiohttp server that reports whether the scheduler loop is
    still ticking.
    """

    model_config = SettingsConfigDict(
        env_prefix="HEALTH_",
        env_file=".env",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Start the health server"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Health server bind address"
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Health server port"
    )


class Settings(BaseSettingsConfig):
    """
    Main Settings Class

    Aggregates all settings sections.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    app_name: str = Field(
        default="Site Sentinel",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    health: HealthSettings = Field(default_factory=HealthSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @model_validator(mode="after")
    def configure_for_environment(self) -> "Settings":
        """Apply environment-specific configuration."""
        if self.is_production:
            self.debug = False
            self.database.echo = False
        elif self.is_testing:
            # tests never write log files
            self.logging.file_enabled = False
            self.logging.error_file_enabled = False
        elif self.debug and self.logging.level == LogLevel.INFO:
            self.logging.level = LogLevel.DEBUG
        return self

    def to_dict(self, *, exclude_secrets: bool = True) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data = self.model_dump(mode="json")

        if exclude_secrets:
            def remove_secrets(obj: Any) -> Any:
                if isinstance(obj, dict):
                    return {
                        k: remove_secrets(v)
                        for k, v in obj.items()
                        if "password" not in k.lower()
                        and "secret" not in k.lower()
                    }
                return obj

            data = remove_secrets(data)

        return data


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings instance

    Raises:
        ConfigurationError: If the environment holds an invalid value
    """
    try:
        return Settings()
    except ValidationError as e:
        first = e.errors()[0]
        config_key = ".".join(str(part) for part in first["loc"]) or None
        raise ConfigurationError(
            f"Invalid configuration: {first['msg']}",
            config_key=config_key,
            cause=e,
        ) from e
