"""
Logger configuration and setup for the SBOM manager.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass

from ..config import get_config
from .log_formatter import StructuredFormatter, ColoredFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler


@dataclass
class LoggerConfig:
    """Configuration for logging system."""
    level: str = "INFO"
    file_path: Optional[str] = None
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    enable_console: bool = True
    enable_structured: bool = False
    enable_colors: bool = True


_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}


class LoggingManager:
    """
    Centralized logging manager for the SBOM manager.

    Installs a console handler and an optional rotating file handler on
    the ``sbom_manager`` package logger. Module loggers created with
    ``logging.getLogger(__name__)`` propagate into it.
    """

    ROOT_LOGGER = "sbom_manager"

    def __init__(self):
        """Initialize the logging manager."""
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.config: Optional[LoggerConfig] = None

    def setup_logging(self, config: Optional[LoggerConfig] = None, force: bool = False) -> None:
        """
        Set up the logging system with the specified configuration.

        Args:
            config: Logging configuration (uses app config if not provided)
            force: Reinstall handlers even when already configured
        """
        if self._configured and not force:
            return
        if self._configured:
            self.close_handlers()

        if config is None:
            app_config = get_config()
            config = LoggerConfig(
                level=app_config.logging.level,
                file_path=app_config.logging.file,
                format_string=app_config.logging.format,
                max_file_size=app_config.logging.max_file_size,
                backup_count=app_config.logging.backup_count,
                enable_structured=app_config.logging.structured
            )

        self.config = config

        package_logger = logging.getLogger(self.ROOT_LOGGER)
        package_logger.setLevel(self._get_log_level(config.level))

        if config.enable_console:
            console_handler = self._create_console_handler(config)
            package_logger.addHandler(console_handler)
            self._handlers['console'] = console_handler

        if config.file_path:
            file_handler = self._create_file_handler(config)
            package_logger.addHandler(file_handler)
            self._handlers['file'] = file_handler

        logging.getLogger(__name__).debug(f"Logging system initialized with level: {config.level}")

        self._configured = True

    def _create_console_handler(self, config: LoggerConfig) -> logging.Handler:
        """Create console handler with appropriate formatter."""
        handler = ConsoleHandler()
        handler.setLevel(self._get_log_level(config.level))

        if config.enable_structured:
            formatter = StructuredFormatter()
        elif config.enable_colors and sys.stderr.isatty():
            formatter = ColoredFormatter(config.format_string)
        else:
            formatter = logging.Formatter(config.format_string)

        handler.setFormatter(formatter)
        return handler

    def _create_file_handler(self, config: LoggerConfig) -> logging.Handler:
        """Create rotating file handler."""
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            filename=config.file_path,
            maxBytes=config.max_file_size * 1024 * 1024,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        handler.setLevel(self._get_log_level(config.level))

        if config.enable_structured:
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(logging.Formatter(config.format_string))

        return handler

    def _get_log_level(self, level_str: str) -> int:
        """Convert string log level to logging constant."""
        return _LEVELS.get(level_str.upper(), logging.INFO)

    def set_level(self, level: str) -> None:
        """
        Change the logging level for the package logger and its handlers.

        Args:
            level: New logging level
        """
        log_level = self._get_log_level(level)
        logging.getLogger(self.ROOT_LOGGER).setLevel(log_level)
        for handler in self._handlers.values():
            handler.setLevel(log_level)

    def get_log_stats(self) -> Dict[str, Any]:
        """
        Get logging system statistics.

        Returns:
            Dictionary with logging statistics
        """
        stats = {
            "configured": self._configured,
            "handlers_active": len(self._handlers),
            "current_level": self.config.level if self.config else "Unknown"
        }
        for name, handler in self._handlers.items():
            if hasattr(handler, 'get_stats'):
                stats[name] = handler.get_stats()
        return stats

    def close_handlers(self) -> None:
        """Close all handlers and clean up resources."""
        package_logger = logging.getLogger(self.ROOT_LOGGER)
        for handler in self._handlers.values():
            package_logger.removeHandler(handler)
            handler.close()

        self._handlers.clear()
        self._configured = False


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggerConfig] = None, force: bool = False) -> None:
    """
    Set up the global logging system.

    Args:
        config: Logging configuration
        force: Reinstall handlers even when already configured
    """
    _logging_manager.setup_logging(config, force=force)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Set the global logging level."""
    _logging_manager.set_level(level)


def get_logging_stats() -> Dict[str, Any]:
    """Get logging system statistics."""
    return _logging_manager.get_log_stats()


def close_logging() -> None:
    """Close logging system and clean up resources."""
    _logging_manager.close_handlers()
