"""Redis-backed mutual exclusion for work shared across processes."""

from .core import (
    LockCoordinator,
    LockProtector,
    LockSettings,
    MemoryLockStore,
    ProtectResult,
    RedisLockStore,
    ResultStatus,
    build_protector,
    cancellation_requested,
)

__all__ = [
    "__version__",
    "LockCoordinator",
    "LockProtector",
    "LockSettings",
    "MemoryLockStore",
    "ProtectResult",
    "RedisLockStore",
    "ResultStatus",
    "build_protector",
    "cancellation_requested",
]

__version__ = "0.1.0"
