"""Caller-facing entry point: key -> acquire -> guarded run -> release -> result."""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Set, TypeVar, Union, overload

from distlock.utils.logging import get_logger

from .coordinator import LockCoordinator
from .fingerprint import KeySpec, operation_identity, resolve_key
from .guard import ExecutionGuard
from .models import CallState, ProtectResult, ResultStatus


F = TypeVar("F", bound=Callable[..., Any])
ProtectedCallable = Callable[..., Awaitable[ProtectResult]]


class LockProtector:
    """Runs callables under a distributed lock whose lease bounds their runtime.

    Calls never raise for contention, timeouts, store errors or failures of the
    protected work; every path ends in a ``ProtectResult``.
    """

    def __init__(
        self,
        coordinator: LockCoordinator,
        guard: ExecutionGuard,
        *,
        default_lease_ms: int = 300_000,
    ) -> None:
        if default_lease_ms <= 0:
            raise ValueError(f"default_lease_ms must be positive, got {default_lease_ms}")
        self.coordinator = coordinator
        self.guard = guard
        self.default_lease_ms = default_lease_ms
        self.logger = get_logger("LockProtector")
        self._orphans: Set["asyncio.Future[Any]"] = set()

    def _transition(self, key: str, state: CallState) -> None:
        self.logger.debug("[%s] -> %s", key, state.value)

    async def _acquire(self, key: str, lease_ms: int) -> Optional[str]:
        # A cancelled caller must not strand a lease the store already granted.
        acquiring = asyncio.ensure_future(self.coordinator.acquire(key, lease_ms))
        try:
            return await asyncio.shield(acquiring)
        except asyncio.CancelledError:
            acquiring.add_done_callback(functools.partial(self._release_orphan, key))
            raise

    def _release_orphan(self, key: str, acquiring: "asyncio.Future[Optional[str]]") -> None:
        if acquiring.cancelled() or acquiring.exception() is not None or acquiring.result() is None:
            return
        self.logger.info("Caller left while acquiring %s; releasing the lease", key)
        releasing = asyncio.ensure_future(self.coordinator.release(key, acquiring.result()))
        self._orphans.add(releasing)
        releasing.add_done_callback(self._orphans.discard)

    async def call(
        self,
        operation: str,
        fn: Callable[..., Any],
        args: Sequence[Any] = (),
        kwargs: Optional[Mapping[str, Any]] = None,
        *,
        key: KeySpec = None,
        lease_ms: Optional[int] = None,
    ) -> ProtectResult:
        """Run ``fn(*args, **kwargs)`` while holding the lock for ``operation``."""
        kwargs = dict(kwargs or {})
        lease = self.default_lease_ms if lease_ms is None else lease_ms
        if lease <= 0:
            raise ValueError(f"lease_ms must be positive, got {lease}")

        try:
            lock_key = resolve_key(operation, args, kwargs, key)
        except Exception as exc:
            self.logger.warning("Key builder for %s failed: %r", operation, exc)
            return ProtectResult(status=ResultStatus.DECLARED_FAILURE, key=operation, error=exc)
        self._transition(lock_key, CallState.ACQUIRING)
        token = await self._acquire(lock_key, lease)
        if token is None:
            self._transition(lock_key, CallState.REJECTED)
            self.logger.info("Rejected %s: lock %s is held", operation, lock_key)
            self._transition(lock_key, CallState.IDLE)
            return ProtectResult.rejected(lock_key)

        self._transition(lock_key, CallState.ACQUIRED)

        async def release() -> None:
            self._transition(lock_key, CallState.RELEASING)
            await self.coordinator.release(lock_key, token)
            self._transition(lock_key, CallState.IDLE)

        self._transition(lock_key, CallState.EXECUTING)
        outcome = await self.guard.run(
            functools.partial(fn, *args, **kwargs),
            lease / 1000,
            on_finish=release,
        )
        result = ProtectResult.from_outcome(lock_key, outcome)
        if result.status is ResultStatus.DECLARED_FAILURE:
            self.logger.warning("%s failed under lock %s: %r", operation, lock_key, result.error)
        elif result.status is ResultStatus.TIMED_OUT:
            self.logger.warning("%s timed out after %d ms under lock %s", operation, lease, lock_key)
        return result

    @overload
    def protect(self, fn: F) -> ProtectedCallable: ...

    @overload
    def protect(
        self, fn: None = None, *, key: KeySpec = None, lease_ms: Optional[int] = None
    ) -> Callable[[F], ProtectedCallable]: ...

    def protect(
        self,
        fn: Optional[F] = None,
        *,
        key: KeySpec = None,
        lease_ms: Optional[int] = None,
    ) -> Union[ProtectedCallable, Callable[[F], ProtectedCallable]]:
        """Decorator form. The wrapped callable becomes a coroutine function returning ``ProtectResult``.

        Usage::

            @protector.protect(key="report:daily", lease_ms=15_000)
            async def build_report(day: str) -> dict: ...

            result = await build_report("2024-01-15")
        """

        if lease_ms is not None and lease_ms <= 0:
            raise ValueError(f"lease_ms must be positive, got {lease_ms}")

        def decorator(func: F) -> ProtectedCallable:
            identity = operation_identity(func)

            @functools.wraps(func)
            async def wrapper(*args: Any, **kwargs: Any) -> ProtectResult:
                return await self.call(identity, func, args, kwargs, key=key, lease_ms=lease_ms)

            return wrapper

        if fn is not None:
            return decorator(fn)
        return decorator

    async def close(self) -> None:
        self.guard.shutdown(wait=False)
        await self.coordinator.store.close()
