"""Run protected work on an isolated worker under a hard deadline.

Every call gets its own ``asyncio.Task``. Coroutine functions run inside that
task; plain callables run on the guard's thread pool. The caller waits on the
task with ``asyncio.wait`` and a timeout, so a full thread pool or a worker
that never returns cannot stretch the caller's deadline.

Cancellation is cooperative. On timeout the worker task is cancelled and the
cancel signal set, but the guard does not wait for the worker to stop:

* a coroutine stops at its next ``await`` unless it suppresses ``CancelledError``;
* blocking work still queued in the thread pool is dropped and never starts;
* blocking work already on a thread cannot be interrupted, it can only poll
  :func:`cancellation_requested`.

The ``on_finish`` hook (lock release) runs in the worker's own ``finally``.
For work that finishes in time this happens before the caller sees the
outcome. For abandoned work it happens whenever the work actually stops,
which may be after the caller was told it timed out. Until then the store
record stays until its lease expires.
"""

from __future__ import annotations

import asyncio
import contextvars
import inspect
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Optional, Set

from distlock.utils.logging import get_logger

from .models import Outcome, OutcomeKind


Work = Callable[[], Any]
FinishHook = Callable[[], Awaitable[Any]]

_cancel_signal: contextvars.ContextVar[Optional[threading.Event]] = contextvars.ContextVar(
    "distlock_cancel_signal", default=None
)


def cancellation_requested() -> bool:
    """True once the guard has given up on the current unit of work."""
    event = _cancel_signal.get()
    return event is not None and event.is_set()


class ExecutionGuard:
    """Deadline-bounded executor for protected work."""

    def __init__(self, *, max_workers: Optional[int] = None) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="distlock-worker")
        self._abandoned: Set[asyncio.Task[Outcome]] = set()
        self.logger = get_logger("ExecutionGuard")

    @property
    def abandoned(self) -> int:
        """Number of timed-out workers that have not stopped yet."""
        return len(self._abandoned)

    async def run(self, work: Work, deadline_s: float, *, on_finish: Optional[FinishHook] = None) -> Outcome:
        if deadline_s <= 0:
            raise ValueError(f"deadline_s must be positive, got {deadline_s}")

        cancel_event = threading.Event()
        task = asyncio.create_task(
            self._worker(work, cancel_event, on_finish),
            name=f"distlock-{getattr(work, '__name__', 'work')}",
        )
        try:
            done, _ = await asyncio.wait({task}, timeout=deadline_s)
        except asyncio.CancelledError:
            self._abandon(task, cancel_event)
            raise

        if task in done:
            if task.cancelled():
                return Outcome(OutcomeKind.FAILED, error=asyncio.CancelledError())
            return task.result()

        self.logger.warning("Work exceeded its %.3fs deadline; cancelling without waiting", deadline_s)
        self._abandon(task, cancel_event)
        return Outcome(OutcomeKind.TIMED_OUT)

    async def _worker(self, work: Work, cancel_event: threading.Event, on_finish: Optional[FinishHook]) -> Outcome:
        _cancel_signal.set(cancel_event)
        try:
            if inspect.iscoroutinefunction(work):
                value = await work()
            else:
                value = await self._run_blocking(work, cancel_event)
            if inspect.isawaitable(value):
                value = await value
            return Outcome(OutcomeKind.COMPLETED, value=value)
        except Exception as exc:
            return Outcome(OutcomeKind.FAILED, error=exc)
        finally:
            if on_finish is not None:
                try:
                    await on_finish()
                except Exception:
                    self.logger.exception("Finish hook failed")

    async def _run_blocking(self, work: Work, cancel_event: threading.Event) -> Any:
        context = contextvars.copy_context()
        pending = self._executor.submit(context.run, work)
        future = asyncio.wrap_future(pending)
        while True:
            try:
                return await asyncio.shield(future)
            except asyncio.CancelledError:
                # Work still queued in the pool never starts. Work already on a
                # thread cannot be stopped, so keep waiting for it; the finish
                # hook must not run while the work is still in progress.
                if pending.cancel() or pending.cancelled():
                    raise
                cancel_event.set()

    def _abandon(self, task: "asyncio.Task[Outcome]", cancel_event: threading.Event) -> None:
        cancel_event.set()
        task.cancel()
        self._abandoned.add(task)
        task.add_done_callback(self._on_abandoned_done)

    def _on_abandoned_done(self, task: "asyncio.Task[Outcome]") -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.warning("Abandoned worker %s crashed: %r", task.get_name(), exc)
            return
        outcome = task.result()
        if outcome.kind is OutcomeKind.FAILED:
            self.logger.warning("Abandoned worker %s failed after its deadline: %r", task.get_name(), outcome.error)
        else:
            self.logger.info("Abandoned worker %s finished after its deadline", task.get_name())

    async def wait_abandoned(self, timeout: Optional[float] = None) -> None:
        """Wait for timed-out workers to stop (mostly useful in tests and shutdown)."""
        if not self._abandoned:
            return
        await asyncio.wait(set(self._abandoned), timeout=timeout)

    def shutdown(self, *, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
