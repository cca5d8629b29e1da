"""
Log handlers used by the logging setup.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TextIO, Dict, Any


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Rotating file handler that creates its directory and counts records.
    """

    def __init__(
        self,
        filename: str,
        mode: str = 'a',
        maxBytes: int = 0,
        backupCount: int = 0,
        encoding: Optional[str] = None,
        delay: bool = False
    ):
        """
        Initialize rotating file handler.

        Args:
            filename: Log file path
            mode: File open mode
            maxBytes: Maximum file size before rotation
            backupCount: Number of backup files to keep
            encoding: File encoding
            delay: Whether to delay file opening
        """
        Path(filename).parent.mkdir(parents=True, exist_ok=True)

        super().__init__(filename, mode, maxBytes, backupCount, encoding, delay)

        self.records_written = 0
        self.rotations_performed = 0

    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        self.records_written += 1

    def doRollover(self) -> None:
        """Perform log rotation with statistics tracking."""
        super().doRollover()
        self.rotations_performed += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics."""
        file_path = Path(self.baseFilename)
        return {
            'records_written': self.records_written,
            'rotations_performed': self.rotations_performed,
            'current_file': self.baseFilename,
            'current_file_size': file_path.stat().st_size if file_path.exists() else 0
        }


class ConsoleHandler(logging.StreamHandler):
    """
    Console handler writing to stderr by default so that command output
    on stdout stays machine readable.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        """
        Initialize console handler.

        Args:
            stream: Output stream (defaults to sys.stderr)
        """
        super().__init__(stream if stream is not None else sys.stderr)
        self._follow_stderr = stream is None
        self.records_written = 0

    def emit(self, record: logging.LogRecord) -> None:
        if self._follow_stderr:
            # sys.stderr may be swapped after setup (click runners, pytest capture)
            self.stream = sys.stderr
        super().emit(record)
        self.records_written += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics."""
        return {
            'records_written': self.records_written,
            'stream_name': getattr(self.stream, 'name', 'unknown')
        }
