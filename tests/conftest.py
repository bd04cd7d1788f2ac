"""Shared pytest fixtures for the test suite."""

from __future__ import annotations

from typing import List, Tuple

import pytest

from distlock.core.coordinator import LockCoordinator
from distlock.core.guard import ExecutionGuard
from distlock.core.protector import LockProtector
from distlock.core.store import LockStore
from distlock.core.store_memory import MemoryLockStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore(LockStore):
    """Memory store that remembers every call made against it."""

    def __init__(self, inner: MemoryLockStore | None = None) -> None:
        self.inner = inner or MemoryLockStore()
        self.sets: List[Tuple[str, str, int, bool]] = []
        self.deletes: List[Tuple[str, str, bool]] = []

    async def conditional_set(self, key: str, token: str, ttl_ms: int) -> bool:
        ok = await self.inner.conditional_set(key, token, ttl_ms)
        self.sets.append((key, token, ttl_ms, ok))
        return ok

    async def compare_and_delete(self, key: str, token: str) -> bool:
        ok = await self.inner.compare_and_delete(key, token)
        self.deletes.append((key, token, ok))
        return ok

    def won_tokens(self) -> List[str]:
        return [token for _, token, _, ok in self.sets if ok]


class BrokenStore(LockStore):
    """Store whose backend is unreachable."""

    async def conditional_set(self, key: str, token: str, ttl_ms: int) -> bool:
        raise ConnectionError("store unavailable")

    async def compare_and_delete(self, key: str, token: str) -> bool:
        raise ConnectionError("store unavailable")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryLockStore:
    return MemoryLockStore()


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def guard():
    guard = ExecutionGuard(max_workers=4)
    yield guard
    guard.shutdown(wait=False)


@pytest.fixture
def protector(recording_store: RecordingStore, guard: ExecutionGuard) -> LockProtector:
    return LockProtector(LockCoordinator(recording_store), guard, default_lease_ms=5_000)
