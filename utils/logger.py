"""
============================================================================
SITE SENTINEL - LOGGING UTILITY
============================================================================
loguru-based logging: one console sink, optional rotating file sink and
an optional error-only file.
============================================================================
"""

import sys
from typing import Optional

from loguru import logger

from config.settings import LoggingSettings, get_settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

def setup_logging(log_settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure logging sinks.

    Args:
        log_settings: Logging section of the settings; defaults to the
            cached application settings.
    """
    log_settings = log_settings or get_settings().logging

    logger.remove()
    logger.configure(extra={"name": "sentinel"})

    log_level = log_settings.level.value

    if log_settings.console_enabled:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=log_settings.console_colored,
            backtrace=True,
            diagnose=False,
        )

    if log_settings.file_enabled:
        log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_settings.file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=log_settings.file_rotation,
            retention=log_settings.file_retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    if log_settings.error_file_enabled:
        log_settings.error_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_settings.error_file_path,
            format=FILE_FORMAT,
            level="ERROR",
            rotation="1 day",
            retention="7 days",
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.bind(name="Logging").info(
        f"Logging initialized — level={log_level}, "
        f"console={log_settings.console_enabled}, file={log_settings.file_enabled}"
    )


def get_logger(name: Optional[str] = None):
    """
    Get logger instance with optional name.

    Args:
        name: Logger name (usually the component or __name__)

    Returns:
        Logger instance
    """
    return logger.bind(name=name or "sentinel")
