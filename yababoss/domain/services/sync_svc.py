# yababoss/domain/services/sync_svc.py
from __future__ import annotations
import inspect
import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from yababoss.domain.clients.catalog_client import CatalogApiClient
from yababoss.domain.models.product import PageProgress, SyncResult
from yababoss.domain.repositories.product_cache_repo import ProductCacheRepo
from yababoss.domain.services.enrichment_svc import invalidate_enriched_cache
from yababoss.domain.services.transformer import DEFAULT_FEATURED_RATIO, transform_products
from yababoss.utils.locks import RedisLock
from yababoss.utils.rate_limit import TokenBucket, throttle

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PageProgress], Union[None, Awaitable[None]]]


class CatalogUnavailableError(RuntimeError):
    """The first catalog page is empty: nothing can be synced."""


async def _notify(cb: Optional[ProgressCallback], progress: PageProgress) -> None:
    if cb is None:
        return
    res = cb(progress)
    if inspect.isawaitable(res):
        await res


class ProgressiveSyncManager:
    """
    Supplier catalog -> products_cache, one page at a time.

      fetch page 1 -> process page 1 -> [fetch page n -> process page n]* -> done

    Each page is transformed and upserted before the next one is fetched, so
    partial results are durable right away and memory stays bounded.
    Only page 1 can abort the run; any later page failure is counted and skipped.
    Pages are strictly sequential (no concurrency towards the upstream API).
    """

    def __init__(
        self,
        client: CatalogApiClient,
        cache_repo: ProductCacheRepo,
        *,
        limiter: Optional[TokenBucket] = None,
        rng: Optional[random.Random] = None,
        featured_ratio: float = DEFAULT_FEATURED_RATIO,
    ):
        self.client = client
        self.cache_repo = cache_repo
        self.limiter = limiter
        self.rng = rng
        self.featured_ratio = featured_ratio

    async def _process(self, items) -> tuple[int, int]:
        records = transform_products(items, rng=self.rng, featured_ratio=self.featured_ratio)
        res = await self.cache_repo.upsert_products(records)
        return res.processed, res.errors

    async def sync_progressively(self, on_page_complete: Optional[ProgressCallback] = None) -> SyncResult:
        t0 = time.perf_counter()
        logger.info("sync start")

        # ---- 1) first page: fatal on failure --------------------------------
        await throttle(self.limiter)
        first = await self.client.fetch_page(1)
        if not first.data:
            raise CatalogUnavailableError("No products available")

        last_page = first.last_page
        logger.info("sync total pages=%s (supplier total=%s)", last_page, first.total)

        processed, errors = await self._process(first.data)
        total_fetched = len(first.data)
        total_processed = processed
        total_errors = errors
        logger.info("sync page=1/%s processed=%s errors=%s", last_page, processed, errors)
        await _notify(on_page_complete, PageProgress(page=1, total_pages=last_page, products=processed))

        # ---- 2) remaining pages: never abort --------------------------------
        for page in range(2, last_page + 1):
            await throttle(self.limiter)
            try:
                data = (await self.client.fetch_page(page)).data
                processed = 0
                if data:
                    processed, errors = await self._process(data)
                    total_fetched += len(data)
                    total_processed += processed
                    total_errors += errors
                    logger.info("sync page=%s/%s processed=%s errors=%s", page, last_page, processed, errors)
                else:
                    logger.info("sync page=%s/%s empty", page, last_page)
                progress = PageProgress(page=page, total_pages=last_page, products=processed)
            except Exception as e:
                # transport, bad payload or driver error: count it, keep going
                logger.error("sync page=%s/%s failed err=%s", page, last_page, e)
                total_errors += 1
                progress = PageProgress(page=page, total_pages=last_page, products=0, error=str(e))
            await _notify(on_page_complete, progress)

        result = SyncResult(
            success=True,
            total_fetched=total_fetched,
            total_processed=total_processed,
            total_errors=total_errors,
            pages_fetched=last_page,
        )
        logger.info(
            "sync done fetched=%s processed=%s errors=%s pages=%s time=%.3fs",
            total_fetched, total_processed, total_errors, last_page, time.perf_counter() - t0,
        )
        return result


def sync_response(result: SyncResult) -> Dict[str, Any]:
    """Shape of the sync trigger's success body."""
    return {
        "success": True,
        "message": f"Synchronisation terminée: {result.total_processed} produits traités sur {result.pages_fetched} pages",
        "stats": {
            "total_fetched": result.total_fetched,
            "processed": result.total_processed,
            "errors": result.total_errors,
            "pages_fetched": result.pages_fetched,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


def sync_error_response(error: Exception) -> Dict[str, Any]:
    return {
        "success": False,
        "error": str(error) or error.__class__.__name__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def run_sync(db, redis, client: CatalogApiClient, settings) -> tuple[int, Dict[str, Any]]:
    """
    Trigger entry point: returns (http_status, body).
    Holds a Redis lock so two triggered syncs cannot interleave their upserts;
    without Redis the run is unguarded (logged).
    """
    manager = ProgressiveSyncManager(
        client,
        ProductCacheRepo(db, settings.products_cache_collection),
        limiter=TokenBucket(settings.sync_rate_per_s),
        featured_ratio=settings.featured_ratio,
    )

    lock = RedisLock(redis, settings.sync_lock_key, ttl=settings.sync_lock_ttl) if redis is not None else None
    if lock is None:
        logger.warning("sync running without lock (no Redis)")
    elif not await lock.acquire():
        logger.warning("sync already running, trigger ignored")
        return 409, {
            "success": False,
            "error": "Synchronisation déjà en cours",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    try:
        result = await manager.sync_progressively()
    except Exception as e:
        logger.error("sync failed err=%s", e)
        return 500, sync_error_response(e)
    finally:
        if lock is not None:
            await lock.release()
        await invalidate_enriched_cache(redis)

    return 200, sync_response(result)
