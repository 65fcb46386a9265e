# yababoss/domain/clients/catalog_client.py
from __future__ import annotations
from typing import List, Optional
import logging
import time

import httpx

from yababoss.domain.models.product import CatalogPage, CatalogProduct
from yababoss.utils.rate_limit import TokenBucket, throttle

logger = logging.getLogger(__name__)


class CatalogApiClient:
    """
    Thin async client for the supplier (Cowema) paginated catalog:
      GET {base}/products?page={n} -> {data, page, last_page, total, per_page}

    No retry here: the sync manager decides what a failed page means.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout_s: float = 30.0,
        limiter: Optional[TokenBucket] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not base_url:
            raise ValueError("CATALOG_API_BASE_URL is not configured")
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s, headers=headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "CatalogApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def fetch_page(self, page: int) -> CatalogPage:
        """Fetch one listing page. Non-2xx raises httpx.HTTPStatusError."""
        t0 = time.perf_counter()
        resp = await self._client.get(f"{self.base_url}/products", params={"page": page})
        resp.raise_for_status()
        result = CatalogPage.model_validate(resp.json())
        logger.debug(
            "catalog page=%s/%s items=%s time=%.3fs",
            page, result.last_page, len(result.data), time.perf_counter() - t0,
        )
        return result

    async def fetch_all_products(self) -> List[CatalogProduct]:
        """
        Page 1 first to learn last_page (a failure there is fatal: without it
        the page count is unknown), then 2..last_page one after the other.
        A failing later page is logged and skipped.
        """
        t0 = time.perf_counter()
        await throttle(self.limiter)
        first = await self.fetch_page(1)
        products: List[CatalogProduct] = list(first.data)
        last_page = first.last_page
        logger.info("catalog fetch_all start last_page=%s total=%s", last_page, first.total)

        skipped: List[int] = []
        for page in range(2, last_page + 1):
            await throttle(self.limiter)
            try:
                products.extend((await self.fetch_page(page)).data)
            except (httpx.HTTPError, ValueError) as e:
                # ValueError covers a non-JSON / invalid body (pydantic ValidationError)
                logger.warning("catalog page=%s skipped err=%s", page, e)
                skipped.append(page)

        logger.info(
            "catalog fetch_all done items=%s pages=%s skipped=%s time=%.3fs",
            len(products), last_page, skipped, time.perf_counter() - t0,
        )
        return products
