"""Abstract interface for the shared lock store."""

from __future__ import annotations

import abc


class LockStore(abc.ABC):
    """Minimal capability set the coordinator needs from a key-value store.

    Both operations must be atomic on the store side; no read-then-write
    sequences from the client are allowed.
    """

    @abc.abstractmethod
    async def conditional_set(self, key: str, token: str, ttl_ms: int) -> bool:  # pragma: no cover - interface
        """Write ``token`` under ``key`` with a ``ttl_ms`` expiry, only if ``key`` is absent."""
        raise NotImplementedError

    @abc.abstractmethod
    async def compare_and_delete(self, key: str, token: str) -> bool:  # pragma: no cover - interface
        """Delete ``key`` only if it currently holds ``token``."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release client resources."""
