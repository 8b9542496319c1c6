"""
Append-only dated log files.

This module provides the log sink used for the operational record of
payment activity:

- LogSink: appends timestamped lines to ``log-YYYY-MM-DD.log``
- DatedFileHandler: logging handler that writes records through a LogSink

The sink is a best-effort side channel. Writing a line never raises into
the caller; failures are counted in ``error_count`` instead.

Usage:
    from core.log_sink import LogSink

    sink = LogSink(settings.LOG_DIR)
    sink.append("Captured payment for invoice in_123")

    # Or through the LOGGING dict in settings:
    "handlers": {
        "ledger": {
            "class": "core.log_sink.DatedFileHandler",
            "directory": LOG_DIR,
        },
    }
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class LogSink:
    """
    Append-only, timestamped text sink.

    Lines are written as ``"<ISO-8601 UTC timestamp>: <line>"`` to a file
    named after the current UTC date. The directory and the file are
    created on first write; existing files are only ever appended to.

    Attributes:
        directory: Folder holding the dated log files
        error_count: Number of lines that could not be written
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.error_count = 0
        self._lock = threading.Lock()

    def path_for(self, moment: datetime) -> Path:
        """Return the file that holds lines written at ``moment``."""
        return self.directory / f"log-{moment.date().isoformat()}.log"

    def append(self, line: str) -> None:
        """
        Append one line to today's file.

        Empty lines are ignored. Any filesystem error is swallowed and
        counted in ``error_count``.
        """
        if not line:
            return

        now = datetime.now(timezone.utc)
        entry = f"{now.isoformat()}: {line}\n"

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with self._lock, self.path_for(now).open("a", encoding="utf-8") as handle:
                handle.write(entry)
        except OSError:
            self.error_count += 1
            # Never routed back into DatedFileHandler (see LOGGING)
            logger.warning(
                "Failed to write log line",
                extra={"directory": str(self.directory), "error_count": self.error_count},
            )


class DatedFileHandler(logging.Handler):
    """
    Logging handler that appends formatted records to a LogSink.

    Failures while formatting or writing a record are counted instead of
    printing a traceback to stderr, so logging stays a side channel.
    """

    def __init__(self, directory: str | Path, level: int = logging.NOTSET):
        super().__init__(level)
        self.sink = LogSink(directory)
        self.error_count = 0

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.sink.append(self.format(record))
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        self.error_count += 1
