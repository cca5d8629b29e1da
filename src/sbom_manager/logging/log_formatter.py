"""
Log formatters for structured and colored output.
"""

import json
import logging
from datetime import datetime
from typing import Dict, Any, Optional

from ..error_handling.exceptions import SBOMManagerError

_STANDARD_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'exc_info', 'exc_text', 'stack_info', 'message', 'asctime', 'taskName'
}

# Pipeline fields passed through ``extra=`` by the scanner, orchestrator and exporter
CONTEXT_FIELDS = ('sbom_id', 'file_name', 'ecosystem', 'export_format', 'component_count')


def extract_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect the pipeline context fields present on a record."""
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for machine-readable logs.

    Each record becomes one JSON object per line. Pipeline fields
    (``sbom_id``, ``file_name``, ``ecosystem``, ``export_format``,
    ``component_count``) go under ``context``; any other ``extra=`` values
    go under ``extra``. An attached SBOMManagerError is serialized under
    ``error`` with its code and context.
    """

    def __init__(self, include_extra: bool = True):
        """
        Initialize structured formatter.

        Args:
            include_extra: Whether to include non-pipeline extra fields
        """
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        context = extract_context(record)
        if context:
            log_entry["context"] = context

        if record.exc_info:
            error = record.exc_info[1]
            if isinstance(error, SBOMManagerError):
                log_entry["error"] = error.to_dict()
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra_fields = self._extract_extra_fields(record)
            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _extract_extra_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        extra = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_FIELDS or key in CONTEXT_FIELDS or key.startswith('_'):
                continue
            extra[key] = value
        return extra


class ColoredFormatter(logging.Formatter):
    """
    Console formatter with a colored, bold level name.

    Pipeline context fields are appended dimmed, e.g.
    ``[file_name=go.sum ecosystem=go]``.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        super().__init__(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record with colors.

        Args:
            record: Log record to format

        Returns:
            Colored log string
        """
        formatted = super().format(record)

        level_color = self.COLORS.get(record.levelname)
        if level_color:
            colored_level = f"{self.BOLD}{level_color}{record.levelname}{self.RESET}"
            formatted = formatted.replace(record.levelname, colored_level, 1)

        context = extract_context(record)
        if context:
            fields = " ".join(f"{key}={value}" for key, value in context.items())
            formatted = f"{formatted} {self.DIM}[{fields}]{self.RESET}"

        return formatted
