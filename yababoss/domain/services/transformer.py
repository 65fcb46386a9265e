# yababoss/domain/services/transformer.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Iterable, List, Optional
import random

from yababoss.domain.models.product import CachedProduct, CatalogProduct

SOURCE_TAG = "cowema_api"

DEFAULT_CATEGORY = "Général"
DEFAULT_CITY = "Non spécifié"
DEFAULT_SUPPLIER = "Fournisseur inconnu"

# Share of synced products flagged "Ya Ba Boss" by the random draw below
DEFAULT_FEATURED_RATIO = 0.3


def _draw_featured(rng: Optional[random.Random], ratio: float) -> bool:
    """
    Placeholder only: the supplier sends no "featured" signal. Real Ya Ba Boss
    status is curated by admins in product_extensions, which always wins in
    the enriched view.
    """
    r = rng.random() if rng is not None else random.random()
    return r < ratio


def transform_product(
    p: CatalogProduct,
    *,
    rng: Optional[random.Random] = None,
    featured_ratio: float = DEFAULT_FEATURED_RATIO,
    synced_at: Optional[datetime] = None,
) -> CachedProduct:
    """Map one supplier record to the cache schema. No I/O."""
    name = p.title or f"Produit {p.id}"
    stock = max(p.available_stock or 0, 0)
    keywords = [k for k in (p.category, p.sub_category, p.brand, p.supplier) if k]

    return CachedProduct(
        external_api_id=str(p.id),
        name=name,
        description=p.description or name,
        price=p.regular_price or p.price or 0,
        promo_price=p.price if p.on_sales else None,
        images=[p.thumbnail] if p.thumbnail else [],
        category=p.category or DEFAULT_CATEGORY,
        subcategory=p.sub_category,
        stock=stock,
        city=p.supplier_city or DEFAULT_CITY,
        location=p.supplier_city,
        supplier_name=p.supplier or DEFAULT_SUPPLIER,
        video_url=None,
        keywords=keywords,
        is_ya_ba_boss=_draw_featured(rng, featured_ratio),
        is_flash_offer=p.on_sales,
        is_active=stock > 0,
        metadata={
            "source": SOURCE_TAG,
            "original_id": p.id,
            "brand": p.brand,
            "etat": p.etat,
            "published_at": p.published_at,
        },
        last_sync=synced_at or datetime.now(timezone.utc),
    )


def transform_products(
    items: Iterable[CatalogProduct],
    *,
    rng: Optional[random.Random] = None,
    featured_ratio: float = DEFAULT_FEATURED_RATIO,
) -> List[CachedProduct]:
    # one timestamp per page: every row of a batch shares its last_sync
    now = datetime.now(timezone.utc)
    return [
        transform_product(p, rng=rng, featured_ratio=featured_ratio, synced_at=now)
        for p in items
    ]
