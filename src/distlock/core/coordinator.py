"""Acquire and release of store-backed leases.

Acquisition is a single ``SET NX`` style write of a fresh random token.
Release deletes the record only if it still holds that token, in one atomic
store-side step. Checking the token prevents this sequence::

    A acquires, stalls past its lease; the record expires
    B acquires the same key
    A finishes and releases -> must not delete B's record

Doing the check and the delete as two round trips would reopen the same race
between them, so the store evaluates both together.
"""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from distlock.utils.logging import get_logger

from .store import LockStore


def new_token() -> str:
    """128 random bits, hex encoded."""
    return secrets.token_hex(16)


class LockCoordinator:
    """Single-shot, non-blocking lock primitive over a ``LockStore``."""

    def __init__(self, store: LockStore, *, token_factory: Callable[[], str] = new_token) -> None:
        self.store = store
        self._token_factory = token_factory
        self.logger = get_logger("LockCoordinator")

    async def acquire(self, key: str, lease_ms: int) -> Optional[str]:
        """Return the winning token, or ``None`` if the key is held or the store failed."""
        if lease_ms <= 0:
            raise ValueError(f"lease_ms must be positive, got {lease_ms}")
        token = self._token_factory()
        try:
            acquired = await self.store.conditional_set(key, token, lease_ms)
        except Exception:
            self.logger.warning("Failed to acquire lock %s; treating as not acquired", key, exc_info=True)
            return None
        if not acquired:
            self.logger.debug("Lock %s is held by another caller", key)
            return None
        self.logger.debug("Acquired lock %s for %d ms", key, lease_ms)
        return token

    async def release(self, key: str, token: str) -> bool:
        """Delete the record for ``key`` if it still holds ``token``."""
        try:
            released = await self.store.compare_and_delete(key, token)
        except Exception:
            self.logger.error(
                "Failed to release lock %s; unlock it manually or wait for the lease to expire",
                key,
                exc_info=True,
            )
            return False
        if not released:
            self.logger.info("Lock %s was no longer held by this caller (lease expired)", key)
            return False
        self.logger.debug("Released lock %s", key)
        return True
