# yababoss/domain/services/recommender.py
from __future__ import annotations
import logging
import math
import re
from typing import Any, Iterable, List, Optional, Sequence

from yababoss.domain.models.product import RecommendationScore
from yababoss.domain.services.constants import (
    BONUS_FLASH_OFFER,
    BONUS_SAME_CITY,
    BONUS_SUBCATEGORY,
    BONUS_YA_BA_BOSS,
    CATEGORY_COMPATIBILITY,
    DEFAULT_MAX_RECOMMENDATIONS,
    DIVERSE_SEED_SUFFIX,
    FALLBACK_CATEGORY,
    FRENCH_STOPWORDS,
    MAX_JITTER,
    OFFSET_SELECTION,
    PRICE_BANDS,
    PRICE_FLOOR_SCORE,
    SCORE_RELATED_CATEGORY,
    SELECTION_DECAY,
    SHORTLIST_FACTOR,
    UNRELATED_CATEGORY_PENALTY,
    WEIGHT_BRAND,
    WEIGHT_CATEGORY,
    WEIGHT_KEYWORDS,
    WEIGHT_PRICE,
)

logger = logging.getLogger(__name__)

_PUNCT = re.compile(r"[^\w\s]")
_DIGITS = re.compile(r"^\d+$")


# ---------- Deterministic pseudo-randomness ---------------------------------

def product_seed(product_id: str) -> int:
    """String hash (h*31 + c) folded to signed 32 bits, absolute value."""
    h = 0
    for ch in str(product_id):
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def seeded_random(seed: float) -> float:
    """Value in [0, 1) fully determined by the seed (no global RNG)."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


# ---------- Feature helpers --------------------------------------------------

def _lower(v: Optional[str]) -> str:
    return (v or "").strip().lower()


def _current_price(p) -> float:
    return float(getattr(p, "promo_price", None) or getattr(p, "price", None) or 0)


def price_score(main_price: float, target_price: float) -> float:
    if main_price <= 0 or target_price <= 0:
        return PRICE_FLOOR_SCORE
    ratio = target_price / main_price
    for low, high, score in PRICE_BANDS:
        if low <= ratio <= high:
            return score
    return PRICE_FLOOR_SCORE


def extract_keywords(p) -> List[str]:
    """Lower-cased name+description tokens (>2 chars, no stopword, no number) + category tokens."""
    text = f"{getattr(p, 'name', None) or ''} {getattr(p, 'description', None) or ''}".lower()
    words = [
        w for w in _PUNCT.sub(" ", text).split()
        if len(w) > 2 and w not in FRENCH_STOPWORDS and not _DIGITS.match(w)
    ]
    cats = [c for c in (_lower(getattr(p, "category", None)), _lower(getattr(p, "subcategory", None))) if c]
    return list(dict.fromkeys(words + cats))


def keyword_similarity(kw1: Sequence[str], kw2: Sequence[str]) -> float:
    """Jaccard with containment matching, plus a bonus for exact matches. Capped at 1."""
    if not kw1 or not kw2:
        return 0.0
    shared = [k for k in kw1 if any(k2 in k or k in k2 for k2 in kw2)]
    union = set(kw1) | set(kw2)
    jaccard = len(shared) / len(union)
    set2 = set(kw2)
    exact = sum(1 for k in kw1 if k in set2)
    exact_bonus = exact / max(len(kw1), len(kw2), 1)
    return min(1.0, jaccard + exact_bonus * 0.3)


def brand_similarity(b1: Optional[str], b2: Optional[str]) -> float:
    if not b1 or not b2:
        return 0.0
    a, b = _lower(b1), _lower(b2)
    if a == b:
        return 1.0
    if a in b or b in a:
        return 0.7
    return 0.0


def _is_eligible(p, source_id: str) -> bool:
    return (
        str(getattr(p, "id", "")) != source_id
        and getattr(p, "is_active", True) is not False
        and bool((getattr(p, "name", None) or "").strip())
    )


# ---------- Recommender ------------------------------------------------------

class SmartProductRecommender:
    """
    Content-based "similar products".
    Pure and stateless: same (product.id, pool) -> same ordered output. The
    pool is only read; scored copies are built internally.
    """

    def __init__(self, compatibility: Optional[dict] = None):
        self.compatibility = compatibility or CATEGORY_COMPATIBILITY

    def score_candidates(self, product, pool: Iterable[Any]) -> List[RecommendationScore]:
        """All eligible candidates with their score and reason tags, best first."""
        source_id = str(product.id)
        seed = product_seed(source_id)
        src_category = _lower(getattr(product, "category", None)) or FALLBACK_CATEGORY
        src_subcategory = _lower(getattr(product, "subcategory", None))
        related = self.compatibility.get(src_category, ())
        src_price = _current_price(product)
        src_keywords = extract_keywords(product)
        src_brand = getattr(product, "supplier_name", None)
        src_city = getattr(product, "city", None)

        candidates = [p for p in pool if _is_eligible(p, source_id)]
        scored: List[RecommendationScore] = []
        for index, p in enumerate(candidates):
            category = _lower(getattr(p, "category", None)) or FALLBACK_CATEGORY
            subcategory = _lower(getattr(p, "subcategory", None))
            score = 0.0
            reasons: List[str] = []

            # 1. category (exact > related > none)
            same_category = category == src_category
            is_related = not same_category and category in related
            if same_category:
                score += WEIGHT_CATEGORY
                reasons.append("same_category")
                if subcategory and src_subcategory and subcategory == src_subcategory:
                    score += BONUS_SUBCATEGORY
                    reasons.append("same_subcategory")
            elif is_related:
                score += SCORE_RELATED_CATEGORY
                reasons.append("related_category")

            # 2. price band
            ps = price_score(src_price, _current_price(p))
            score += ps * WEIGHT_PRICE
            if ps > 0.8:
                reasons.append("similar_price")

            # 3. content
            ks = keyword_similarity(src_keywords, extract_keywords(p))
            score += ks * WEIGHT_KEYWORDS
            if ks > 0.2:
                reasons.append("content_match")

            # 4. brand / supplier
            bs = brand_similarity(src_brand, getattr(p, "supplier_name", None))
            score += bs * WEIGHT_BRAND
            if bs > 0:
                reasons.append("same_brand")

            # 5. quality / location
            if getattr(p, "is_ya_ba_boss", False):
                score += BONUS_YA_BA_BOSS
                reasons.append("ya_ba_boss")
            if getattr(p, "is_flash_offer", False):
                score += BONUS_FLASH_OFFER
                reasons.append("flash_offer")
            city = getattr(p, "city", None)
            if src_city and city and src_city == city:
                score += BONUS_SAME_CITY
                reasons.append("same_location")

            # 6. seeded jitter breaks near-ties differently per source product
            score += seeded_random(seed + index) * MAX_JITTER

            if not same_category and not is_related:
                score *= UNRELATED_CATEGORY_PENALTY

            scored.append(RecommendationScore(product=p, score=score, reasons=reasons))

        # stable sort: equal scores keep pool order
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    def get_recommendations(self, product, pool: Iterable[Any], max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS) -> list:
        if product is None or max_recommendations <= 0:
            return []
        pool = list(pool)
        if not pool:
            return []

        seed = product_seed(str(product.id))
        scored = self.score_candidates(product, pool)
        logger.debug(
            "reco product_id=%s pool=%s eligible=%s top=%s",
            product.id, len(pool), len(scored),
            [(getattr(s.product, "id", None), round(s.score, 3), s.reasons) for s in scored[:5]],
        )

        shortlist = scored[: max_recommendations * SHORTLIST_FACTOR]
        if len(shortlist) <= max_recommendations:
            # everything eligible gets shown: nothing to draw, keep the ranking
            return [s.product for s in shortlist]

        selection = []
        for i in range(max_recommendations):
            weights = [SELECTION_DECAY ** rank for rank in range(len(shortlist))]
            remaining = seeded_random(seed + i + OFFSET_SELECTION) * sum(weights)
            picked = 0
            for j, w in enumerate(weights):
                remaining -= w
                if remaining <= 0:
                    picked = j
                    break
            selection.append(shortlist.pop(picked).product)

        logger.debug("reco product_id=%s selected=%s", product.id, [getattr(p, "id", None) for p in selection])
        return selection

    def get_diverse_recommendations(self, product, pool: Iterable[Any], max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS) -> list:
        """
        "You might also explore": other categories only, no scoring, a seeded
        shuffle so each product gets its own stable selection.
        """
        if product is None or max_recommendations <= 0:
            return []
        source_id = str(product.id)
        seed = product_seed(source_id + DIVERSE_SEED_SUFFIX)
        category = getattr(product, "category", None)
        others = [
            p for p in pool
            if str(getattr(p, "id", "")) != source_id
            and getattr(p, "category", None) != category
            and getattr(p, "is_active", True) is not False
        ]
        ranked = sorted(
            ((seeded_random(seed + index), index, p) for index, p in enumerate(others)),
            key=lambda t: (-t[0], t[1]),
        )
        return [p for _, _, p in ranked[:max_recommendations]]
