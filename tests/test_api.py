"""HTTP surface, with Mongo / Redis / supplier API replaced through dependency_overrides."""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from yababoss.api.deps import catalog_client, mongo_db, redis_dep
from yababoss.core.config import get_settings
from yababoss.domain.models.product import CatalogPage
from yababoss.main import app


class StubCatalog:
    def __init__(self, pages):
        self.pages = pages

    async def fetch_page(self, page):
        ids = self.pages.get(page, [])
        return CatalogPage.model_validate({
            "data": [
                {"id": i, "title": f"Téléphone {i}", "price": 50000 + i, "available_stock": 3, "category": "phones"}
                for i in ids
            ],
            "page": page,
            "last_page": max(self.pages),
        })


def _row(ext_id, **kw):
    doc = {
        "id": f"loc-{ext_id}",
        "external_api_id": ext_id,
        "name": f"Produit {ext_id}",
        "price": 10000,
        "category": "phones",
        "is_active": True,
        "is_ya_ba_boss": False,
        "last_sync": datetime(2024, 6, 1, tzinfo=timezone.utc),
    }
    doc.update(kw)
    return doc


@pytest.fixture
def client(fake_db, fake_redis, monkeypatch):
    monkeypatch.setattr(get_settings(), "sync_rate_per_s", 0.0)
    catalog = StubCatalog({1: [1, 2], 2: [3]})

    async def _catalog():
        yield catalog

    app.dependency_overrides[mongo_db] = lambda: fake_db
    app.dependency_overrides[redis_dep] = lambda: fake_redis
    app.dependency_overrides[catalog_client] = _catalog
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides = {}


@pytest.fixture
def seeded(fake_db):
    fake_db["products_cache"].docs.extend([
        _row("1", price=10000),
        _row("2", price=11000, is_ya_ba_boss=True),
        _row("3", price=9000, category="books"),
        _row("4", price=10500, category="accessories"),
    ])
    return fake_db


def test_sync_products(client, fake_db):
    resp = client.post("/sync-products")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["stats"]["total_fetched"] == 3
    assert body["stats"]["pages_fetched"] == 2
    assert len(fake_db["products_cache"].docs) == 3


def test_sync_products_conflict(client, fake_redis):
    fake_redis.store[f"lock:{get_settings().sync_lock_key}"] = "busy"
    resp = client.post("/sync-products")
    assert resp.status_code == 409
    assert resp.json()["success"] is False


def test_list_products_with_filters(client, seeded):
    all_items = client.get("/products").json()
    assert all_items["count"] == 4

    featured = client.get("/products", params={"featured": "true"}).json()
    assert [p["external_api_id"] for p in featured["items"]] == ["2"]

    books = client.get("/products", params={"category": "BOOKS"}).json()
    assert [p["id"] for p in books["items"]] == ["loc-3"]


def test_get_product_and_404(client, seeded):
    assert client.get("/products/1").json()["id"] == "loc-1"
    assert client.get("/products/loc-1").json()["external_api_id"] == "1"
    assert client.get("/products/999").status_code == 404


def test_patch_extension_then_clear_video(client, seeded):
    resp = client.patch("/products/loc-1/extension", json={"is_ya_ba_boss": True, "video_url": "https://v/1.mp4"})
    assert resp.status_code == 200
    assert resp.json()["is_ya_ba_boss"] is True
    assert resp.json()["has_extension"] is True

    resp = client.delete("/products/loc-1/video")
    assert resp.json()["video_url"] == ""
    assert resp.json()["is_ya_ba_boss"] is True

    featured = client.get("/products", params={"featured": "true"}).json()
    assert {p["id"] for p in featured["items"]} == {"loc-1", "loc-2"}


def test_patch_extension_rejects_unknown_fields(client, seeded):
    assert client.patch("/products/loc-1/extension", json={"price": 1}).status_code == 422


def test_patch_extension_unknown_product(client, seeded):
    assert client.patch("/products/nope/extension", json={"is_active": False}).status_code == 404


def test_similar_is_stable_and_excludes_source(client, seeded):
    first = client.get("/products/loc-1/similar", params={"limit": 2}).json()
    second = client.get("/products/loc-1/similar", params={"limit": 2}).json()
    ids = [p["id"] for p in first["items"]]
    assert ids == [p["id"] for p in second["items"]]
    assert "loc-1" not in ids
    assert first["count"] == 2


def test_diverse_other_categories(client, seeded):
    body = client.get("/products/loc-1/diverse", params={"limit": 5}).json()
    assert {p["id"] for p in body["items"]} == {"loc-3", "loc-4"}


def test_recommendations_with_candidate_pool(client, seeded):
    resp = client.post(
        "/recommendations",
        json={"product_id": "loc-1", "candidate_pool_ids": ["loc-2", "3", "loc-1"], "n": 2},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["items"] == ["loc-2", "loc-3"]


def test_recommendations_unknown_product(client, seeded):
    assert client.post("/recommendations", json={"product_id": "zzz"}).status_code == 404


def test_refresh_cache(client, seeded, fake_redis):
    client.get("/products")
    assert get_settings().enriched_cache_key in fake_redis.store
    assert client.post("/products/cache/refresh").json() == {"success": True, "dropped": True}


def test_health_reports_checks(client):
    body = client.get("/health").json()
    assert "checks" in body
    assert body["checks"]["catalog_api_configured"] is False
    assert body["checks"]["redis"] == "skipped"


@pytest.mark.parametrize("field", ["is_active", "is_ya_ba_boss", "is_flash_offer", "keywords"])
def test_patch_extension_rejects_null_flags(client, seeded, field):
    resp = client.patch("/products/loc-1/extension", json={field: None})
    assert resp.status_code == 422
    assert seeded["product_extensions"].docs == []


def test_null_overlay_row_does_not_break_reads(client, seeded):
    seeded["product_extensions"].docs.append({"product_id": "loc-1", "is_active": None})

    assert client.get("/products").status_code == 200
    assert client.get("/products/loc-1").json()["is_active"] is True
    assert client.get("/products/loc-2/similar").status_code == 200
