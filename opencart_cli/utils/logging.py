"""
Logging setup for oc-cli.

Log output goes to stderr so that command output on stdout stays clean
for piping (e.g. ``oc-cli product:list -f json | jq``).
"""

import json
import logging
import logging.handlers
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER_NAME = "opencart_cli"

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'exc_info', 'exc_text',
    'stack_info', 'taskName', 'message', 'asctime',
}


@dataclass
class LogEntry:
    """Structured log entry with metadata."""
    timestamp: datetime = field(default_factory=datetime.now)
    level: str = "INFO"
    logger: str = ROOT_LOGGER_NAME
    message: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class StructuredFormatter(logging.Formatter):
    """Formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = LogEntry(
            timestamp=datetime.fromtimestamp(record.created),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            metadata={
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
            }
        )

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry.metadata[key] = value

        if record.exc_info:
            log_entry.metadata['exception'] = self.formatException(record.exc_info)

        return log_entry.to_json()


LOG_FORMATS = ("text", "json")

_TEXT_FORMAT = logging.Formatter(
    fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    structured_logging: bool = False,
    max_log_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure the ``opencart_cli`` logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path, rotated at ``max_log_size``
        structured_logging: Emit JSON lines instead of Rich console text
        max_log_size: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if structured_logging:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=level.upper() == "DEBUG",
            rich_tracebacks=True
        )

    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_log_size,
            backupCount=backup_count
        )
        file_handler.setFormatter(StructuredFormatter() if structured_logging else _TEXT_FORMAT)

        # The file always gets full detail
        file_handler.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        console_handler.setLevel(getattr(logging, level.upper()))
        logger.addHandler(file_handler)

    return logger
