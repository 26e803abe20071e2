"""
Utilities Package for Site Sentinel
"""

from utils.logger import get_logger, setup_logging
from utils.helpers import TimeHelper
from utils.validators import URLValidator, DataValidator

__all__ = [
    "get_logger",
    "setup_logging",
    "TimeHelper",
    "URLValidator",
    "DataValidator",
]
