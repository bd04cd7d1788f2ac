"""Data models shared across the lock protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .exceptions import LockError, LockRejectedError, LockTimeoutError


class OutcomeKind(str, Enum):
    """How a guarded unit of work ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(slots=True, frozen=True)
class Outcome:
    """Transient result of one guarded execution."""

    kind: OutcomeKind
    value: Any = None
    error: Optional[BaseException] = None


class ResultStatus(str, Enum):
    """Caller-visible result variants."""

    VALUE = "value"
    REJECTED = "rejected"
    DECLARED_FAILURE = "declared_failure"
    TIMED_OUT = "timed_out"


@dataclass(slots=True, frozen=True)
class ProtectResult:
    """What a protected call reports back to its caller."""

    status: ResultStatus
    key: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.VALUE

    @classmethod
    def rejected(cls, key: str) -> "ProtectResult":
        return cls(status=ResultStatus.REJECTED, key=key)

    @classmethod
    def from_outcome(cls, key: str, outcome: Outcome) -> "ProtectResult":
        if outcome.kind is OutcomeKind.COMPLETED:
            return cls(status=ResultStatus.VALUE, key=key, value=outcome.value)
        if outcome.kind is OutcomeKind.FAILED:
            return cls(status=ResultStatus.DECLARED_FAILURE, key=key, error=outcome.error)
        return cls(status=ResultStatus.TIMED_OUT, key=key)

    def unwrap(self) -> Any:
        """Return the value, or raise the exception matching the failure variant."""
        if self.status is ResultStatus.VALUE:
            return self.value
        if self.status is ResultStatus.REJECTED:
            raise LockRejectedError(self.key)
        if self.status is ResultStatus.TIMED_OUT:
            raise LockTimeoutError(self.key)
        if self.error is not None:
            raise self.error
        raise LockError(self.key, "Protected operation failed")


class CallState(Enum):
    """Lifecycle of one protected call; every path ends back in IDLE."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    REJECTED = "rejected"
    ACQUIRED = "acquired"
    EXECUTING = "executing"
    RELEASING = "releasing"
