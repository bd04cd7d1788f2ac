"""Redis-backed lock store using SET NX PX and a Lua compare-and-delete."""

from __future__ import annotations

import os
from typing import Optional

from redis.asyncio import Redis

from .store import LockStore


# Runs entirely on the server so no other client can interleave between GET and DEL.
RELEASE_LUA = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


class RedisLockStore(LockStore):
    """Single-node Redis store. Not safe across failover (no replication guarantees)."""

    def __init__(
        self,
        redis: Optional[Redis] = None,
        *,
        url: Optional[str] = None,
        key_prefix: str = "lock:",
    ) -> None:
        self._redis = redis or Redis.from_url(
            url or os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            decode_responses=True,
        )
        self._prefix = key_prefix
        self._release_script = self._redis.register_script(RELEASE_LUA)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def conditional_set(self, key: str, token: str, ttl_ms: int) -> bool:
        return bool(await self._redis.set(self._key(key), token, px=ttl_ms, nx=True))

    async def compare_and_delete(self, key: str, token: str) -> bool:
        deleted = await self._release_script(keys=[self._key(key)], args=[token])
        return bool(int(deleted or 0))

    async def close(self) -> None:
        await self._redis.aclose()
