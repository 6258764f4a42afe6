"""
Shared utilities: error types, logging setup, and polling.
"""

from .exceptions import (
    DriverError, TransportError, ConnectionError, RetrievalError,
    WaitTimeout, AddressWaitTimeout, StateWaitTimeout, OperationCancelled,
    ConfigError, InvalidConfigError, MissingConfigError,
)
from .logging_config import setup_logging, get_logger, LogContext, current_context
from .polling import Deadline, wait_for

__all__ = [
    # Exceptions
    "DriverError", "TransportError", "ConnectionError", "RetrievalError",
    "WaitTimeout", "AddressWaitTimeout", "StateWaitTimeout", "OperationCancelled",
    "ConfigError", "InvalidConfigError", "MissingConfigError",
    # Logging
    "setup_logging", "get_logger", "LogContext", "current_context",
    # Polling
    "Deadline", "wait_for",
]
