"""Exceptions raised by the lock protocol."""

from __future__ import annotations


class LockError(Exception):
    """Base class for lock protocol errors."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{message}: {key}")
        self.key = key


class LockRejectedError(LockError):
    """Another holder owns the lock; the operation did not run."""

    def __init__(self, key: str) -> None:
        super().__init__(key, "Operation in progress, try again later")


class LockTimeoutError(LockError):
    """The protected work did not finish within the lock lease."""

    def __init__(self, key: str) -> None:
        super().__init__(key, "Lock lease expired before the operation finished")
