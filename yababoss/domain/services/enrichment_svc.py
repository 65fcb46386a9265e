# yababoss/domain/services/enrichment_svc.py
import logging
import time
from typing import Dict, List, Optional

from yababoss.core.config import get_settings
from yababoss.domain.models.product import (
    CachedProduct,
    EnrichedProduct,
    ProductExtension,
    ProductExtensionUpdate,
)
from yababoss.domain.repositories.extension_repo import ProductExtensionRepo
from yababoss.domain.repositories.product_cache_repo import ProductCacheRepo
from yababoss.utils.cache import cache_delete, cache_get, cache_set

logger = logging.getLogger(__name__)


def merge_extension(cached: CachedProduct, extension: Optional[ProductExtension]) -> EnrichedProduct:
    """
    Overlay wins for every field it actually carries, including falsy values
    (is_active=False, video_url=""). Missing extension = no override.
    """
    data = cached.model_dump()
    data["id"] = cached.id or cached.external_api_id
    if extension is not None:
        data.update(extension.overrides())
    data["has_extension"] = extension is not None
    return EnrichedProduct.model_validate(data)


def find_extension(cached: CachedProduct, extensions: Dict[str, ProductExtension]) -> Optional[ProductExtension]:
    """Admins may have keyed the overlay by the local id or by the supplier id."""
    if cached.id and cached.id in extensions:
        return extensions[cached.id]
    return extensions.get(cached.external_api_id)


def enrich_all(cached: List[CachedProduct], extensions: Dict[str, ProductExtension]) -> List[EnrichedProduct]:
    return [merge_extension(c, find_extension(c, extensions)) for c in cached]


async def get_all_enriched_products(db, redis=None, *, use_cache: bool = True) -> List[EnrichedProduct]:
    """
    Full enriched list (every cached product, overlay applied).
    Served from Redis when possible; the cache is dropped after each sync and
    each admin overlay change.
    """
    settings = get_settings()
    t0 = time.perf_counter()
    key = settings.enriched_cache_key

    if use_cache:
        cached_list = await cache_get(redis, key)
        if cached_list is not None:
            items = [EnrichedProduct.model_validate(x) for x in cached_list]
            logger.info("enriched cache_hit items=%s time=%.3fs", len(items), time.perf_counter() - t0)
            return items

    cache_repo = ProductCacheRepo(db, settings.products_cache_collection)
    ext_repo = ProductExtensionRepo(db, settings.product_extensions_collection)
    cached = await cache_repo.list_all()
    extensions = await ext_repo.get_all_map()
    items = enrich_all(cached, extensions)

    if use_cache:
        await cache_set(redis, key, [i.model_dump(mode="json") for i in items], ex=settings.enriched_cache_ttl)
    logger.info(
        "enriched built items=%s extensions=%s time=%.3fs",
        len(items), len(extensions), time.perf_counter() - t0,
    )
    return items


async def get_enriched_product(db, product_id: str) -> Optional[EnrichedProduct]:
    settings = get_settings()
    cached = await ProductCacheRepo(db, settings.products_cache_collection).get_by_id(product_id)
    if cached is None:
        return None
    ext = await ProductExtensionRepo(db, settings.product_extensions_collection).get_for(cached)
    return merge_extension(cached, ext)


async def save_product_extension(db, redis, product_id: str, update: ProductExtensionUpdate) -> Optional[EnrichedProduct]:
    """
    Admin action (toggle Ya Ba Boss / flash offer / active, attach a video...).
    The overlay is keyed by the product's local id so later lookups hit first.
    Returns None when the product is not in the cache.
    """
    settings = get_settings()
    cached = await ProductCacheRepo(db, settings.products_cache_collection).get_by_id(product_id)
    if cached is None:
        return None

    fields = update.model_dump(exclude_unset=True)
    ext_repo = ProductExtensionRepo(db, settings.product_extensions_collection)
    ext = await ext_repo.get_for(cached)
    key = ext.product_id if ext is not None else (cached.id or cached.external_api_id)

    if fields:
        # flags and keywords are never stored as null, even from an unvalidated update
        ProductExtensionUpdate.model_validate(fields)
        ext = await ext_repo.save(key, fields)
        await invalidate_enriched_cache(redis)
        logger.info("extension saved product_id=%s fields=%s", key, sorted(fields))
    return merge_extension(cached, ext)


async def invalidate_enriched_cache(redis) -> bool:
    return await cache_delete(redis, get_settings().enriched_cache_key)
