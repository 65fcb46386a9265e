# api/v1/schemas/reco.py
from pydantic import BaseModel, Field
from typing import List, Optional

from yababoss.domain.models.product import EnrichedProduct


class RecommendationRequest(BaseModel):
    product_id: str
    candidate_pool_ids: Optional[List[str]] = None
    n: int = Field(3, ge=1, le=50)


class RecommendationIdsOut(BaseModel):
    product_id: str
    items: List[str]
    count: int


class RecommendationsOut(BaseModel):
    product_id: str
    items: List[EnrichedProduct]
    count: int


class EnrichedListOut(BaseModel):
    items: List[EnrichedProduct]
    count: int
