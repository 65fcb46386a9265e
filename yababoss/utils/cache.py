import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


async def cache_get(redis: Optional[Redis], key: str) -> Optional[Any]:
    """Best-effort read: a missing client or a Redis error is a cache miss."""
    if redis is None:
        return None
    try:
        if val := await redis.get(key):
            return json.loads(val)
    except Exception as e:
        logger.warning("cache_get error key=%s err=%s", key, e)
    return None


async def cache_set(redis: Optional[Redis], key: str, value: Any, ex: int = 60) -> None:
    if redis is None:
        return
    try:
        # datetimes (last_sync) are stored as ISO strings
        await redis.set(key, json.dumps(value, default=str, ensure_ascii=False), ex=ex)
    except Exception as e:
        logger.warning("cache_set error key=%s err=%s", key, e)


async def cache_delete(redis: Optional[Redis], key: str) -> bool:
    if redis is None:
        return False
    try:
        return bool(await redis.delete(key))
    except Exception as e:
        logger.warning("cache_delete error key=%s err=%s", key, e)
        return False
