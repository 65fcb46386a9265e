# yababoss/api/v1/routers/recommendations.py
from fastapi import APIRouter, Depends, HTTPException, Query
import logging
import time

from yababoss.api.deps import mongo_db, recommender, redis_dep
from yababoss.api.v1.schemas.reco import RecommendationIdsOut, RecommendationRequest, RecommendationsOut
from yababoss.domain.services.enrichment_svc import get_all_enriched_products

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])


def _find(pool, product_id: str):
    # local id first, then supplier id
    for p in pool:
        if p.id == product_id:
            return p
    for p in pool:
        if p.external_api_id == product_id:
            return p
    return None


async def _pool_and_source(db, redis, product_id: str):
    pool = await get_all_enriched_products(db, redis)
    source = _find(pool, product_id)
    if source is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return pool, source


@router.get("/products/{product_id}/similar", response_model=RecommendationsOut)
async def similar_products(
    product_id: str,
    limit: int = Query(3, ge=1, le=50),
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
    reco = Depends(recommender),
):
    """Similar products over the whole enriched catalog (deterministic per product)."""
    logger.info("Request: similar_products product_id=%s limit=%s", product_id, limit)
    t0 = time.perf_counter()
    pool, source = await _pool_and_source(db, redis, product_id)
    items = reco.get_recommendations(source, pool, limit)
    logger.info(
        "Response: similar_products product_id=%s count=%s elapsed_time=%.4fs",
        product_id, len(items), time.perf_counter() - t0,
    )
    return {"product_id": source.id, "items": items, "count": len(items)}


@router.get("/products/{product_id}/diverse", response_model=RecommendationsOut)
async def diverse_products(
    product_id: str,
    limit: int = Query(3, ge=1, le=50),
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
    reco = Depends(recommender),
):
    """Vous aimerez aussi: other categories, seeded selection."""
    pool, source = await _pool_and_source(db, redis, product_id)
    items = reco.get_diverse_recommendations(source, pool, limit)
    return {"product_id": source.id, "items": items, "count": len(items)}


@router.post("/recommendations", response_model=RecommendationIdsOut)
async def recommendations(
    body: RecommendationRequest,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
    reco = Depends(recommender),
):
    """
    {product_id, candidate_pool_ids?, n} -> ordered product ids.
    Without candidate_pool_ids the whole enriched catalog is the pool.
    """
    t0 = time.perf_counter()
    pool, source = await _pool_and_source(db, redis, body.product_id)
    if body.candidate_pool_ids is not None:
        wanted = set(body.candidate_pool_ids)
        pool = [p for p in pool if p.id in wanted or p.external_api_id in wanted]
    items = [p.id for p in reco.get_recommendations(source, pool, body.n)]
    logger.info(
        "Response: recommendations product_id=%s pool=%s count=%s elapsed_time=%.4fs",
        body.product_id, len(pool), len(items), time.perf_counter() - t0,
    )
    return {"product_id": source.id, "items": items, "count": len(items)}
