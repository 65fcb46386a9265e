import httpx
import pytest

from yababoss.domain.clients.catalog_client import CatalogApiClient

BASE = "https://api.supplier.test/v1"


def _page(page, last_page, ids):
    return {
        "data": [{"id": i, "title": f"Produit {i}", "price": 1000 + i} for i in ids],
        "page": page,
        "last_page": last_page,
        "total": 30,
        "per_page": 10,
    }


def _client(handler, **kw):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CatalogApiClient(BASE, client=http, **kw), http


@pytest.mark.asyncio
async def test_fetch_page_parses_listing():
    seen = []

    def handler(request: httpx.Request):
        seen.append(str(request.url))
        return httpx.Response(200, json=_page(2, 3, [11, 12]))

    client, http = _client(handler)
    page = await client.fetch_page(2)
    await http.aclose()

    assert seen == [f"{BASE}/products?page=2"]
    assert page.page == 2 and page.last_page == 3
    assert [p.id for p in page.data] == [11, 12]


@pytest.mark.asyncio
async def test_fetch_page_accepts_current_page_key():
    def handler(request):
        body = _page(1, 1, [1])
        body["current_page"] = body.pop("page")
        return httpx.Response(200, json=body)

    client, http = _client(handler)
    page = await client.fetch_page(1)
    await http.aclose()
    assert page.page == 1


@pytest.mark.asyncio
async def test_fetch_page_raises_on_http_error():
    client, http = _client(lambda request: httpx.Response(503, json={"message": "down"}))
    with pytest.raises(httpx.HTTPStatusError):
        await client.fetch_page(1)
    await http.aclose()


@pytest.mark.asyncio
async def test_fetch_all_skips_failed_later_page():
    def handler(request):
        page = int(request.url.params["page"])
        if page == 2:
            return httpx.Response(500)
        return httpx.Response(200, json=_page(page, 3, [page * 10 + 1, page * 10 + 2]))

    client, http = _client(handler)
    products = await client.fetch_all_products()
    await http.aclose()

    assert [p.id for p in products] == [11, 12, 31, 32]


@pytest.mark.asyncio
async def test_fetch_all_first_page_failure_is_fatal():
    calls = []

    def handler(request):
        calls.append(request.url.params["page"])
        return httpx.Response(500)

    client, http = _client(handler)
    with pytest.raises(httpx.HTTPStatusError):
        await client.fetch_all_products()
    await http.aclose()
    assert calls == ["1"]


@pytest.mark.asyncio
async def test_fetch_all_is_throttled_between_pages():
    acquired = []

    class CountingLimiter:
        async def acquire(self):
            acquired.append(1)
            return 0.0

    def handler(request):
        page = int(request.url.params["page"])
        return httpx.Response(200, json=_page(page, 4, [page]))

    client, http = _client(handler, limiter=CountingLimiter())
    products = await client.fetch_all_products()
    await http.aclose()

    assert len(products) == 4
    assert len(acquired) == 4


def test_token_header_is_sent():
    client = CatalogApiClient(BASE, token="secret")
    assert client._client.headers["Authorization"] == "Bearer secret"


def test_base_url_is_required():
    with pytest.raises(ValueError):
        CatalogApiClient("")
