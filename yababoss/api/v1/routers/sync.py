# yababoss/api/v1/routers/sync.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging
import time

from yababoss.api.deps import catalog_client, mongo_db, redis_dep
from yababoss.core.config import get_settings
from yababoss.domain.services.sync_svc import run_sync

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


@router.post("/sync-products")
async def sync_products(
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
    client = Depends(catalog_client),
):
    """
    Progressive supplier catalog sync (no body).
    200 -> {success, message, stats:{total_fetched, processed, errors, pages_fetched, timestamp}}
    500 -> {success:false, error, timestamp} when the first page is missing/empty
    409 -> a sync is already running
    """
    logger.info("Request: sync_products")
    start_time = time.perf_counter()

    status, body = await run_sync(db, redis, client, get_settings())

    logger.info(
        "Response: sync_products status=%s success=%s elapsed_time=%.4fs",
        status, body.get("success"), time.perf_counter() - start_time,
    )
    return JSONResponse(status_code=status, content=body)
