# yababoss/api/deps.py
from typing import AsyncIterator

from fastapi import Depends, HTTPException

from yababoss.core.config import Settings, get_settings
from yababoss.db.mongo import get_db
from yababoss.db.redis import get_redis
from yababoss.domain.clients.catalog_client import CatalogApiClient
from yababoss.domain.services.recommender import SmartProductRecommender
from yababoss.utils.rate_limit import TokenBucket


# Dependency for injecting the MongoDB database into endpoints/services
def mongo_db():
    try:
        return get_db()
    except AssertionError:
        raise HTTPException(status_code=503, detail="MongoDB unavailable (not initialized).")


# Dependency for injecting the Redis client (may be None) into endpoints/services
def redis_dep():
    return get_redis()


# One supplier client per sync trigger, closed when the request ends
async def catalog_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[CatalogApiClient]:
    if not settings.CATALOG_API_BASE_URL:
        raise HTTPException(status_code=503, detail="Supplier catalog API not configured.")
    client = CatalogApiClient(
        settings.CATALOG_API_BASE_URL,
        token=settings.CATALOG_API_TOKEN or None,
        timeout_s=settings.catalog_timeout_s,
        limiter=TokenBucket(settings.fetch_rate_per_s),
    )
    try:
        yield client
    finally:
        await client.aclose()


def recommender() -> SmartProductRecommender:
    return SmartProductRecommender()
