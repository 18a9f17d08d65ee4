from enum import Enum
from typing import Optional


class Severity(Enum):
    INFO = "INFO"
    WARN = "WARN"
    ABORT = "ABORT"


class ErrorKind(Enum):
    ARGUMENT = "ARGUMENT"
    TIMEOUT = "TIMEOUT"
    CONNECTION = "CONNECTION"
    SSL = "SSL"
    REDIRECT = "REDIRECT"
    INVALID_URL = "INVALID_URL"
    UNKNOWN = "UNKNOWN"


class AppError(Exception):
    """
    Error that carries severity + classification metadata so callers can
    decide how to react.
    """

    def __init__(
        self,
        message: str,
        severity: Severity = Severity.WARN,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.severity = severity
        self.kind = kind
        self.original_exception = original_exception

    def __str__(self) -> str:
        base = super().__str__()
        return f"[{self.severity.name}/{self.kind.name}] {base}"


class InvalidArgumentError(AppError, ValueError):
    """Raised when a Request is built or configured with a bad argument."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message, Severity.ABORT, ErrorKind.ARGUMENT, original_exception)
