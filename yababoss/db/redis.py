# yababoss/db/redis.py
import redis.asyncio as redis
from yababoss.core.config import get_settings

settings = get_settings()
_client: redis.Redis | None = None


def _new_client(url: str) -> redis.Redis:
    # short timeouts: the enriched cache and the sync lock are optional, a
    # slow Redis must not stall product reads
    return redis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=settings.redis_timeout_s,
        socket_timeout=settings.redis_timeout_s,
    )


async def connect(url: str | None = None) -> bool:
    """
    Redis sert au cache de la vue enrichie et au verrou de synchro.
    Absent ou injoignable -> get_redis() renvoie None et l'app tourne sans.
    """
    global _client
    url = url if url is not None else settings.REDIS_URL
    if not url:
        print("⚠️ No REDIS_URL configured, running without cache and sync lock")
        _client = None
        return False

    candidate = _new_client(url)
    try:
        await candidate.ping()
    except Exception as e:
        print(f"⚠️ Redis unreachable ({e}), running without cache and sync lock")
        await candidate.aclose()
        _client = None
        return False

    _client = candidate
    print("✅ Redis connected")
    return True


async def disconnect() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()
        print("ℹ️ Redis disconnected")


def get_redis() -> redis.Redis | None:
    return _client


async def status() -> str:
    """'ok', 'skipped' (not configured / unreachable at startup) or 'error: ...'."""
    if _client is None:
        return "skipped"
    try:
        await _client.ping()
        return "ok"
    except Exception as e:
        return f"error: {e}"
