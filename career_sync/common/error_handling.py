"""
Error taxonomy for the dual-write reconciliation layer.

Every failure that crosses a channel boundary (local mirror or remote API)
is classified into one ErrorKind so logs and results can tell apart
"the network hiccuped" from "the request was wrong" from "the mirror
is unusable".
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


class ErrorKind(str, Enum):
    """Classification of a channel failure."""
    PERSISTENCE = "persistence"  # Local mirror unavailable or unwritable
    TRANSIENT = "transient"      # Network error, timeout, 5xx, 408, 429
    VALIDATION = "validation"    # Remote rejected the request (other 4xx)


class SyncException(Exception):
    """Base class for reconciliation-layer exceptions."""

    kind: ErrorKind = ErrorKind.PERSISTENCE


class LocalStoreError(SyncException):
    """Raised when the local key-value store cannot be read or written."""

    kind = ErrorKind.PERSISTENCE

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


class RemoteApiError(SyncException):
    """
    Raised by the remote API adapter on network failure or non-2xx status.

    Attributes:
        kind: TRANSIENT or VALIDATION
        status_code: HTTP status, None for network-level failures
        method: HTTP method of the failed request
        path: Request path of the failed request
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: Optional[int] = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        self.method = method
        self.path = path
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        return self.kind == ErrorKind.TRANSIENT


def classify_status(status_code: Optional[int]) -> ErrorKind:
    """
    Map an HTTP status code to an ErrorKind.

    None (no response at all), 5xx, 408 and 429 are transient; every other
    4xx means the server understood and refused the request.
    """
    if status_code is None:
        return ErrorKind.TRANSIENT
    if status_code >= 500 or status_code in (408, 429):
        return ErrorKind.TRANSIENT
    return ErrorKind.VALIDATION


@dataclass
class SyncError:
    """
    Structured record of a single channel failure during a mutation.
    """

    channel: str  # "local" or "remote"
    operation: str  # e.g. "upsert", "create", "delete", "read"
    kind: ErrorKind
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    recoverable: bool = True
    exception_type: Optional[str] = None
    status_code: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "channel": self.channel,
            "operation": self.operation,
            "kind": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "recoverable": self.recoverable,
            "exception_type": self.exception_type,
            "status_code": self.status_code,
        }


class ErrorCollector:
    """
    Collects channel errors during one reconciling operation.
    """

    def __init__(self):
        self.errors: List[SyncError] = []

    def add(self, error: SyncError) -> None:
        self.errors.append(error)

    def add_exception(
        self,
        channel: str,
        operation: str,
        exception: Exception,
        recoverable: bool = True,
    ) -> SyncError:
        """Record an exception, deriving kind and status from typed exceptions."""
        kind = getattr(exception, "kind", ErrorKind.PERSISTENCE)
        error = SyncError(
            channel=channel,
            operation=operation,
            kind=kind,
            message=str(exception),
            recoverable=recoverable,
            exception_type=type(exception).__name__,
            status_code=getattr(exception, "status_code", None),
        )
        self.errors.append(error)
        return error

    def for_channel(self, channel: str) -> List[SyncError]:
        return [e for e in self.errors if e.channel == channel]

    def has_kind(self, kind: ErrorKind) -> bool:
        return any(e.kind == kind for e in self.errors)

    def summary(self) -> Dict[str, object]:
        """Error counts by kind and by channel."""
        by_kind = {kind.value: 0 for kind in ErrorKind}
        for error in self.errors:
            by_kind[error.kind.value] += 1
        return {
            "total": len(self.errors),
            "by_kind": by_kind,
            "local": len(self.for_channel("local")),
            "remote": len(self.for_channel("remote")),
        }


def log_level_for(kind: ErrorKind) -> int:
    """
    Log level used for a swallowed channel failure.

    Validation errors are logged at ERROR so a rejected request is never
    mistaken for a network blip in the logs.
    """
    if kind == ErrorKind.VALIDATION:
        return logging.ERROR
    return logging.WARNING
