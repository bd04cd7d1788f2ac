"""In-process lock store with lazy lease expiry."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .store import LockStore


@dataclass(slots=True)
class _Record:
    token: str
    expires_at: float


class MemoryLockStore(LockStore):
    """Store for tests and single-process use.

    Methods never await between the check and the write, so each operation is
    atomic with respect to other coroutines on the same event loop. It gives no
    guarantees across threads or processes.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._records: Dict[str, _Record] = {}

    def _live(self, key: str) -> Optional[_Record]:
        record = self._records.get(key)
        if record is not None and record.expires_at <= self._clock():
            del self._records[key]
            return None
        return record

    async def conditional_set(self, key: str, token: str, ttl_ms: int) -> bool:
        if self._live(key) is not None:
            return False
        self._records[key] = _Record(token=token, expires_at=self._clock() + ttl_ms / 1000)
        return True

    async def compare_and_delete(self, key: str, token: str) -> bool:
        record = self._live(key)
        if record is None or record.token != token:
            return False
        del self._records[key]
        return True

    def peek(self, key: str) -> Optional[str]:
        """Return the token currently held under ``key``, if any."""
        record = self._live(key)
        return record.token if record else None

    def __len__(self) -> int:
        return sum(1 for key in list(self._records) if self._live(key) is not None)
