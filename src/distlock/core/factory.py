"""Wiring helpers that build the protocol stack from settings."""

from __future__ import annotations

from typing import Optional

from .coordinator import LockCoordinator
from .guard import ExecutionGuard
from .protector import LockProtector
from .settings import LockSettings
from .store import LockStore
from .store_memory import MemoryLockStore
from .store_redis import RedisLockStore


def build_store(settings: LockSettings) -> LockStore:
    """Return the store selected by ``settings.backend``."""
    if settings.backend == "redis":
        return RedisLockStore(url=settings.redis_url, key_prefix=settings.key_prefix)
    if settings.backend == "memory":
        return MemoryLockStore()
    raise ValueError(f"Unknown lock backend {settings.backend!r}, must be 'redis' or 'memory'")


def build_protector(settings: Optional[LockSettings] = None, *, store: Optional[LockStore] = None) -> LockProtector:
    settings = settings or LockSettings.from_env()
    return LockProtector(
        LockCoordinator(store if store is not None else build_store(settings)),
        ExecutionGuard(max_workers=settings.max_workers),
        default_lease_ms=settings.default_lease_ms,
    )
