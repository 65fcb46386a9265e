# yababoss/utils/locks.py
from __future__ import annotations
from typing import Optional
from redis.asyncio import Redis
import uuid

# Compare-and-delete in one round trip: the key is only removed while it
# still holds our token.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class LockNotAcquired(RuntimeError):
    """Another worker already holds the lock."""


class RedisLock:
    """
    Single-instance lock using SET NX EX.
    Guards the catalog sync: two triggered syncs would otherwise interleave
    their page upserts on the same cache collection.

        async with RedisLock(redis, "sync:products", ttl=1800):
            ...
    """
    def __init__(self, redis: Redis, key: str, ttl: int = 20):
        self.redis = redis
        self.key = f"lock:{key}"
        self.ttl = ttl
        self._token: Optional[str] = None
        self._release = redis.register_script(_RELEASE_SCRIPT)

    @property
    def held(self) -> bool:
        return self._token is not None

    async def acquire(self) -> bool:
        token = uuid.uuid4().hex
        ok = await self.redis.set(self.key, token, nx=True, ex=self.ttl)
        if ok:
            self._token = token
            return True
        return False

    async def release(self) -> bool:
        """False when the TTL expired and the key now belongs to another worker."""
        if self._token is None:
            return False
        token, self._token = self._token, None
        return bool(await self._release(keys=[self.key], args=[token]))

    async def __aenter__(self) -> "RedisLock":
        if not await self.acquire():
            raise LockNotAcquired(self.key)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()
