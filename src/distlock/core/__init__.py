"""Lock protocol: store adapters, key derivation, coordinator, guard and protector."""

from .coordinator import LockCoordinator, new_token
from .exceptions import LockError, LockRejectedError, LockTimeoutError
from .factory import build_protector, build_store
from .fingerprint import encode_arguments, operation_identity, resolve_key
from .guard import ExecutionGuard, cancellation_requested
from .models import CallState, Outcome, OutcomeKind, ProtectResult, ResultStatus
from .protector import LockProtector
from .settings import LockSettings
from .store import LockStore
from .store_memory import MemoryLockStore
from .store_redis import RedisLockStore

__all__ = [
    "LockCoordinator",
    "new_token",
    "LockError",
    "LockRejectedError",
    "LockTimeoutError",
    "build_protector",
    "build_store",
    "encode_arguments",
    "operation_identity",
    "resolve_key",
    "ExecutionGuard",
    "cancellation_requested",
    "CallState",
    "Outcome",
    "OutcomeKind",
    "ProtectResult",
    "ResultStatus",
    "LockProtector",
    "LockSettings",
    "LockStore",
    "MemoryLockStore",
    "RedisLockStore",
]
