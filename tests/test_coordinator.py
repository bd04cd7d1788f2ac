from __future__ import annotations

import asyncio

import pytest

from distlock.core.coordinator import LockCoordinator, new_token
from distlock.core.store_memory import MemoryLockStore

from .conftest import BrokenStore


def test_new_token_has_128_bits_and_is_not_reused():
    tokens = {new_token() for _ in range(1000)}
    assert len(tokens) == 1000
    assert all(len(token) == 32 for token in tokens)


@pytest.mark.asyncio
async def test_concurrent_acquire_has_exactly_one_winner(store: MemoryLockStore):
    coordinators = [LockCoordinator(store) for _ in range(10)]

    tokens = await asyncio.gather(*(c.acquire("R", 5_000) for c in coordinators))

    winners = [token for token in tokens if token is not None]
    assert len(winners) == 1
    assert tokens.count(None) == 9
    assert len(store) == 1
    assert store.peek("R") == winners[0]


@pytest.mark.asyncio
async def test_two_callers_within_milliseconds(store: MemoryLockStore):
    caller1 = LockCoordinator(store)
    caller2 = LockCoordinator(store)

    first = await caller1.acquire("R", 5_000)
    await asyncio.sleep(0.01)
    second = await caller2.acquire("R", 5_000)

    assert first is not None
    assert second is None


@pytest.mark.asyncio
async def test_failed_acquire_does_not_touch_the_record(store: MemoryLockStore):
    coordinator = LockCoordinator(store)
    token = await coordinator.acquire("R", 5_000)

    assert await coordinator.acquire("R", 5_000) is None
    assert store.peek("R") == token


@pytest.mark.asyncio
async def test_each_acquisition_uses_a_fresh_token(store: MemoryLockStore):
    coordinator = LockCoordinator(store)
    seen = []
    for _ in range(5):
        token = await coordinator.acquire("R", 5_000)
        assert token is not None
        seen.append(token)
        assert await coordinator.release("R", token) is True
    assert len(set(seen)) == 5


@pytest.mark.asyncio
async def test_release_with_foreign_token_keeps_record(store: MemoryLockStore):
    coordinator = LockCoordinator(store)
    token_a = await coordinator.acquire("R", 5_000)

    assert await coordinator.release("R", new_token()) is False
    assert store.peek("R") == token_a


@pytest.mark.asyncio
async def test_release_twice_succeeds_once(store: MemoryLockStore):
    coordinator = LockCoordinator(store)
    token = await coordinator.acquire("R", 5_000)

    assert await coordinator.release("R", token) is True
    assert await coordinator.release("R", token) is False
    assert store.peek("R") is None


@pytest.mark.asyncio
async def test_lease_expiry_frees_the_key(clock):
    store = MemoryLockStore(clock=clock)
    coordinator = LockCoordinator(store)
    assert await coordinator.acquire("R", 1_000) is not None

    clock.advance(0.999)
    assert await coordinator.acquire("R", 1_000) is None

    clock.advance(0.002)
    assert store.peek("R") is None
    assert await coordinator.acquire("R", 1_000) is not None


@pytest.mark.asyncio
async def test_stale_holder_cannot_release_new_holder(clock):
    store = MemoryLockStore(clock=clock)
    holder_a = LockCoordinator(store)
    holder_b = LockCoordinator(store)

    token_a = await holder_a.acquire("R", 1_000)
    clock.advance(1.5)
    token_b = await holder_b.acquire("R", 1_000)
    assert token_b is not None

    assert await holder_a.release("R", token_a) is False
    assert store.peek("R") == token_b


@pytest.mark.asyncio
async def test_store_failure_on_acquire_is_fail_closed():
    coordinator = LockCoordinator(BrokenStore())

    assert await coordinator.acquire("R", 5_000) is None


@pytest.mark.asyncio
async def test_store_failure_on_release_returns_false():
    coordinator = LockCoordinator(BrokenStore())

    assert await coordinator.release("R", new_token()) is False


@pytest.mark.asyncio
async def test_non_positive_lease_is_rejected(store: MemoryLockStore):
    coordinator = LockCoordinator(store)

    with pytest.raises(ValueError):
        await coordinator.acquire("R", 0)
    assert len(store) == 0


@pytest.mark.asyncio
async def test_custom_token_factory(store: MemoryLockStore):
    coordinator = LockCoordinator(store, token_factory=lambda: "fixed")

    assert await coordinator.acquire("R", 5_000) == "fixed"
    assert store.peek("R") == "fixed"
