"""
Logging configuration for the domain driver.

Console output for humans, optional rotating file output (plain or JSON)
for later inspection.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
import threading
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER_PREFIX = "domain_driver"
LOG_FILE_NAME = "domain-driver.log"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    log_dir: Optional[Path] = None,
):
    """
    Configure the root logger.

    Args:
        level: Console logging level (default: INFO)
        log_file: Path to log file (optional)
        json_logs: Use JSON format for file logs
        log_dir: Directory for log files (creates domain-driver.log)
    """
    root_logger = logging.getLogger()
    # The file handler captures everything, so the root must let DEBUG through
    root_logger.setLevel(logging.DEBUG if (log_file or log_dir) else level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_file = log_dir / LOG_FILE_NAME

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)

        if json_logs:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s"
            ))

        root_logger.addHandler(file_handler)

    # libvirt-python reports every failed lookup through its own handler
    logging.getLogger("libvirt").setLevel(logging.WARNING)


_log_context: ContextVar[Dict[str, Any]] = ContextVar("domain_driver_log_context", default={})
_factory_lock = threading.Lock()
_factory_installed = False


def _install_record_factory() -> None:
    """Wrap the record factory once; the wrapper reads the current context."""
    global _factory_installed
    with _factory_lock:
        if _factory_installed:
            return
        base_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = base_factory(*args, **kwargs)
            context = _log_context.get()
            if context:
                record.context = dict(context)
            return record

        logging.setLogRecordFactory(record_factory)
        _factory_installed = True


def current_context() -> Dict[str, Any]:
    """Context attached to records created in the calling thread/task."""
    return dict(_log_context.get())


class LogContext:
    """
    Attach key/value context to every record created inside the block.

    Context is held per thread (and per asyncio task), so overlapping
    blocks in different threads never see each other's values.

    Example:
        with LogContext(domain_id="vm1"):
            logger.info("Resolving state")  # record.context == {"domain_id": "vm1"}
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        _install_record_factory()
        merged = dict(_log_context.get())
        merged.update(self.context)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, *args):
        _log_context.reset(self._token)
        self._token = None


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``domain_driver`` prefix."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")
