"""
Domain: Device check outcomes.

Every stage of a device check reports its outcome as a tagged CheckResult
instead of raising across layers. The ErrorKind carries the caller-facing
classification (HTTP status and whether retrying can help).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .device_data import CacheSource


class ErrorKind(str, Enum):
    VALIDATION_FAILURE = "validation_failure"
    UNAUTHORIZED = "unauthorized"
    INVALID_OR_INSUFFICIENT_PAYMENT = "invalid_or_insufficient_payment"
    ALREADY_USED = "already_used"
    CONCURRENT_REDEMPTION_IN_PROGRESS = "concurrent_redemption_in_progress"
    NETWORK_FAILURE = "network_failure"
    UPSTREAM_REJECTED = "upstream_rejected"
    INTERNAL_ERROR = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_FAILURE: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INVALID_OR_INSUFFICIENT_PAYMENT: 400,
    ErrorKind.ALREADY_USED: 400,
    ErrorKind.CONCURRENT_REDEMPTION_IN_PROGRESS: 409,
    ErrorKind.NETWORK_FAILURE: 502,
    ErrorKind.UPSTREAM_REJECTED: 400,
    ErrorKind.INTERNAL_ERROR: 500,
}

_RETRYABLE = frozenset({
    ErrorKind.CONCURRENT_REDEMPTION_IN_PROGRESS,
    ErrorKind.NETWORK_FAILURE,
    ErrorKind.UPSTREAM_REJECTED,
})


@dataclass(frozen=True, slots=True)
class CheckResult:
    """
    Result of a device check attempt.

    success: True if device data was obtained
    data: upstream payload (None on failure)
    source: cache tier that served the data (None on failure)
    error_kind / error_message: populated iff success is False
    """

    success: bool
    data: Any = None
    source: Optional[CacheSource] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success and self.error_kind is not None:
            raise ValueError("successful CheckResult cannot carry an error")
        if not self.success and self.error_kind is None:
            raise ValueError("failed CheckResult requires an error_kind")

    @classmethod
    def ok(cls, data: Any, source: CacheSource) -> "CheckResult":
        return cls(success=True, data=data, source=source)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "CheckResult":
        return cls(success=False, error_kind=kind, error_message=message)

    @property
    def status_code(self) -> int:
        return 200 if self.error_kind is None else self.error_kind.status_code


__all__ = [
    "CheckResult",
    "ErrorKind",
]
