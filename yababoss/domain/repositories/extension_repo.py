# yababoss/domain/repositories/extension_repo.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from yababoss.domain.models.product import CachedProduct, ProductExtension


class ProductExtensionRepo:
    """
    Admin overlay backed by the 'product_extensions' collection, keyed by a
    canonical string product_id (local id or supplier id).
    Only the keys an admin actually set are stored, so an absent key means
    "fall back to the cache" and a stored False/"" means "override".
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "product_extensions"):
        self.col = db[collection_name]

    async def get(self, product_id: str) -> Optional[ProductExtension]:
        doc = await self.col.find_one({"product_id": str(product_id)}, {"_id": 0})
        return ProductExtension.model_validate(doc) if doc else None

    async def get_for(self, cached: CachedProduct) -> Optional[ProductExtension]:
        """Overlay of a cached product: keyed by its local id first, then its supplier id."""
        ext = await self.get(cached.id) if cached.id else None
        if ext is None:
            ext = await self.get(cached.external_api_id)
        return ext

    async def get_all_map(self) -> Dict[str, ProductExtension]:
        """Full scan as {product_id: extension}."""
        cursor = self.col.find({}, {"_id": 0})
        out: Dict[str, ProductExtension] = {}
        async for doc in cursor:
            ext = ProductExtension.model_validate(doc)
            out[ext.product_id] = ext
        return out

    async def save(self, product_id: str, fields: Dict[str, Any]) -> ProductExtension:
        """Partial upsert of the given overlay fields; returns the stored extension."""
        pid = str(product_id)
        now = datetime.now(timezone.utc)
        await self.col.update_one(
            {"product_id": pid},
            {"$set": {**fields, "updated_at": now}},
            upsert=True,
        )
        return await self.get(pid)
