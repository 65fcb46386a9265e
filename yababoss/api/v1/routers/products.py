# yababoss/api/v1/routers/products.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging
import time

from yababoss.api.deps import mongo_db, redis_dep
from yababoss.api.v1.schemas.reco import EnrichedListOut
from yababoss.domain.models.product import EnrichedProduct, ProductExtensionUpdate
from yababoss.domain.services.enrichment_svc import (
    get_all_enriched_products,
    get_enriched_product,
    invalidate_enriched_cache,
    save_product_extension,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


@router.get("/products", response_model=EnrichedListOut)
async def list_products(
    featured: Optional[bool] = Query(None, description="Only Ya Ba Boss (true) / non Ya Ba Boss (false)"),
    active: Optional[bool] = Query(None, description="Filter on is_active"),
    category: Optional[str] = Query(None, description="Case-insensitive category"),
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    t0 = time.perf_counter()
    items = await get_all_enriched_products(db, redis)
    if featured is not None:
        items = [p for p in items if p.is_ya_ba_boss is featured]
    if active is not None:
        items = [p for p in items if p.is_active is active]
    if category:
        wanted = category.strip().lower()
        items = [p for p in items if (p.category or "").lower() == wanted]
    logger.info(
        "Response: list_products count=%s featured=%s active=%s category=%s elapsed_time=%.4fs",
        len(items), featured, active, category, time.perf_counter() - t0,
    )
    return {"items": items, "count": len(items)}


@router.post("/products/cache/refresh", summary="Drop the enriched products cache")
async def refresh_products_cache(redis = Depends(redis_dep)):
    dropped = await invalidate_enriched_cache(redis)
    return {"success": True, "dropped": dropped}


@router.get("/products/{product_id}", response_model=EnrichedProduct)
async def get_product(product_id: str, db = Depends(mongo_db)):
    product = await get_enriched_product(db, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


@router.patch("/products/{product_id}/extension", response_model=EnrichedProduct)
async def update_product_extension(
    product_id: str,
    update: ProductExtensionUpdate,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    """
    Admin overlay (Ya Ba Boss, flash offer, active, video, keywords, city).
    Only the keys present in the body are written; they win over the synced data.
    """
    product = await save_product_extension(db, redis, product_id, update)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


@router.delete("/products/{product_id}/video", response_model=EnrichedProduct)
async def clear_product_video(product_id: str, db = Depends(mongo_db), redis = Depends(redis_dep)):
    product = await save_product_extension(db, redis, product_id, ProductExtensionUpdate(video_url=""))
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product
