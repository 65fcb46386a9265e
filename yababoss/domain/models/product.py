from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone


def _as_id(v: Any) -> Any:
    # ids are canonical strings everywhere past the ingestion boundary
    return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


# ---- Supplier (Cowema) API --------------------------------------------------

class CatalogProduct(BaseModel):
    """Raw supplier record. Never mutated locally."""
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    price: Optional[float] = None
    regular_price: Optional[float] = None
    on_sales: bool = False
    available_stock: Optional[int] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    supplier: Optional[str] = None
    supplier_city: Optional[str] = None
    brand: Optional[str] = None
    published_at: Optional[str] = None
    etat: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("on_sales", mode="before")
    @classmethod
    def _null_is_false(cls, v):
        return bool(v) if v is not None else False


class CatalogPage(BaseModel):
    data: List[CatalogProduct] = []
    page: int = 1
    last_page: int = 1
    total: int = 0
    per_page: int = 0

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _current_page_alias(cls, values):
        # Laravel-style paginators send current_page instead of page
        if isinstance(values, dict):
            if "page" not in values and "current_page" in values:
                values = {**values, "page": values["current_page"]}
            if values.get("data") is None:
                values = {**values, "data": []}
        return values


# ---- Local cache ------------------------------------------------------------

class CachedProduct(BaseModel):
    id: Optional[str] = None                 # local id, set once at first insert
    external_api_id: str                     # upsert key, stable across syncs
    name: str
    description: Optional[str] = None
    price: float = 0
    promo_price: Optional[float] = None
    images: List[str] = []
    category: Optional[str] = None
    subcategory: Optional[str] = None
    stock: int = Field(default=0, ge=0)
    city: Optional[str] = None
    location: Optional[str] = None
    supplier_name: Optional[str] = None
    video_url: Optional[str] = None
    keywords: List[str] = []
    is_ya_ba_boss: bool = False
    is_flash_offer: bool = False
    is_active: bool = True
    metadata: Dict[str, Any] = {}
    last_sync: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", "external_api_id", mode="before")
    @classmethod
    def _canonical_ids(cls, v):
        return _as_id(v)


# Fields an admin can override through the extension overlay
OVERLAY_FIELDS = ("video_url", "is_ya_ba_boss", "keywords", "city", "is_active", "is_flash_offer")

# Overlay fields whose cached counterpart cannot be null
NON_NULL_OVERLAY_FIELDS = ("is_ya_ba_boss", "keywords", "is_active", "is_flash_offer")


class ProductExtension(BaseModel):
    """
    Admin-curated overlay. A field counts as set when the stored document has
    the key, whatever its value: is_active=False must win over the cache.
    """
    product_id: str
    video_url: Optional[str] = None
    is_ya_ba_boss: Optional[bool] = None
    keywords: Optional[List[str]] = None
    city: Optional[str] = None
    is_active: Optional[bool] = None
    is_flash_offer: Optional[bool] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("product_id", mode="before")
    @classmethod
    def _canonical_product_id(cls, v):
        return _as_id(v)

    def overrides(self) -> Dict[str, Any]:
        # a stored null on a non-nullable field is ignored, not applied
        return {
            f: getattr(self, f)
            for f in OVERLAY_FIELDS
            if f in self.model_fields_set
            and not (f in NON_NULL_OVERLAY_FIELDS and getattr(self, f) is None)
        }


class ProductExtensionUpdate(BaseModel):
    """
    PATCH body: only the keys sent by the admin are written.
    video_url and city accept null; flags and keywords do not.
    """
    video_url: Optional[str] = None
    is_ya_ba_boss: Optional[bool] = None
    keywords: Optional[List[str]] = None
    city: Optional[str] = None
    is_active: Optional[bool] = None
    is_flash_offer: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(*NON_NULL_OVERLAY_FIELDS)
    @classmethod
    def _not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class EnrichedProduct(CachedProduct):
    """Cache + overlay, materialized on demand and never persisted."""
    id: str
    has_extension: bool = False

    model_config = {"frozen": True}  # immuable = safe


# ---- Recommendation / sync results -----------------------------------------

class RecommendationScore(BaseModel):
    product: Any
    score: float
    reasons: List[str] = []


class PageProgress(BaseModel):
    page: int
    total_pages: int
    products: int
    error: Optional[str] = None


class UpsertResult(BaseModel):
    processed: int = 0
    errors: int = 0


class SyncResult(BaseModel):
    success: bool
    total_fetched: int
    total_processed: int
    total_errors: int
    pages_fetched: int
