"""
Domain Driver Exception Hierarchy

Errors carry a machine-readable code and structured details so callers
can log them, show them to users, or branch on them programmatically.
"""

from typing import Optional, Dict, Any


class DriverError(Exception):
    """
    Base exception for all domain driver errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
        cause: Original exception that caused this error
        recoverable: Whether retrying the operation later may succeed
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable

    def __str__(self):
        s = f"[{self.code}] {self.message}"
        if self.details:
            s += f" (details: {self.details})"
        if self.cause:
            s += f" caused by: {self.cause}"
        return s

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Hypervisor boundary errors
# =============================================================================

class TransportError(DriverError):
    """Low-level failure reported by a hypervisor boundary while connecting."""
    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, code="TRANSPORT_ERROR", cause=cause)


class ConnectionError(DriverError):
    """Hypervisor unreachable or credentials rejected."""
    def __init__(self, uri: str, error_message: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Error while connecting to libvirt at {uri}: {error_message}",
            code="CONNECTION_FAILED",
            details={"uri": uri},
            cause=cause,
        )
        self.uri = uri
        self.error_message = error_message


class RetrievalError(DriverError):
    """
    A domain could not be retrieved from the hypervisor.

    ``error_code`` is the hypervisor's own numeric error code; the
    "no such domain" code marks a not-found condition.
    """
    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code="RETRIEVAL_FAILED",
            details={"error_code": error_code},
            cause=cause,
        )
        self.error_code = error_code


# =============================================================================
# Waiting
# =============================================================================

class WaitTimeout(DriverError):
    """A bounded wait expired before its condition was met."""
    def __init__(self, message: str, timeout: float):
        super().__init__(message, code="WAIT_TIMEOUT", details={"timeout": timeout})
        self.timeout = timeout


class AddressWaitTimeout(WaitTimeout):
    """No address appeared within the address wait window."""
    pass


class StateWaitTimeout(WaitTimeout):
    """A domain did not leave the shutting-down state before the deadline."""
    pass


class OperationCancelled(DriverError):
    """A wait was cancelled by the caller."""
    def __init__(self, operation: str):
        super().__init__(
            f"{operation} was cancelled",
            code="CANCELLED",
            details={"operation": operation},
        )


# =============================================================================
# Configuration errors
# =============================================================================

class ConfigError(DriverError):
    """Base for configuration errors."""
    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration."""
    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration: {field}={value}: {reason}",
            code="INVALID_CONFIG",
            details={"field": field, "value": str(value), "reason": reason},
            recoverable=False,
        )


class MissingConfigError(ConfigError):
    """Required configuration missing."""
    def __init__(self, field: str):
        super().__init__(
            f"Missing required configuration: {field}",
            code="MISSING_CONFIG",
            details={"field": field},
            recoverable=False,
        )
