"""
Logging system for the SBOM manager.
"""

from .logger_config import (
    setup_logging, get_logger, set_log_level, get_logging_stats,
    close_logging, LoggerConfig
)
from .log_formatter import StructuredFormatter, ColoredFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler

__all__ = [
    "setup_logging",
    "get_logger",
    "set_log_level",
    "get_logging_stats",
    "close_logging",
    "LoggerConfig",
    "StructuredFormatter",
    "ColoredFormatter",
    "RotatingFileHandler",
    "ConsoleHandler"
]
