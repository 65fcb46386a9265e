# yababoss/domain/repositories/product_cache_repo.py

from __future__ import annotations
from typing import List, Optional, Sequence
import logging
import time
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import UpdateOne
from pymongo.errors import PyMongoError

from yababoss.domain.models.product import CachedProduct, UpsertResult

logger = logging.getLogger(__name__)


class ProductCacheRepo:
    """
    Product cache backed by the 'products_cache' collection.
    Written only by the sync pipeline, keyed by external_api_id.
    Rows are never deleted by a sync: a product missing from a page stays stale.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products_cache"):
        self.col = db[collection_name]

    async def upsert_products(self, records: Sequence[CachedProduct]) -> UpsertResult:
        """
        One bulk upsert per call (callers pass one page).
        Existing rows with the same external_api_id are updated, not skipped;
        the local `id` is only set on insert so it survives every later sync.
        Any driver error marks the whole batch as errors.
        """
        if not records:
            return UpsertResult(processed=0, errors=0)

        ops: List[UpdateOne] = []
        for rec in records:
            fields = rec.model_dump(exclude={"id"})
            ops.append(
                UpdateOne(
                    {"external_api_id": rec.external_api_id},
                    {"$set": fields, "$setOnInsert": {"id": rec.id or uuid.uuid4().hex}},
                    upsert=True,
                )
            )

        t0 = time.perf_counter()
        try:
            res = await self.col.bulk_write(ops, ordered=False)
        except PyMongoError as e:
            logger.error("cache upsert failed batch=%s err=%s", len(records), e)
            return UpsertResult(processed=0, errors=len(records))

        logger.debug(
            "cache upsert ok batch=%s upserted=%s modified=%s time=%.3fs",
            len(records), res.upserted_count, res.modified_count, time.perf_counter() - t0,
        )
        return UpsertResult(processed=len(records), errors=0)

    async def list_all(self) -> List[CachedProduct]:
        cursor = self.col.find({}, {"_id": 0})
        return [CachedProduct.model_validate(doc) async for doc in cursor]

    async def get_by_id(self, product_id: str) -> Optional[CachedProduct]:
        """Local id first, then the supplier id."""
        pid = str(product_id)
        doc = await self.col.find_one({"id": pid}, {"_id": 0})
        if not doc:
            doc = await self.col.find_one({"external_api_id": pid}, {"_id": 0})
        return CachedProduct.model_validate(doc) if doc else None

    async def count(self) -> int:
        return await self.col.count_documents({})
