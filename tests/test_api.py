"""HTTP-level tests through the ASGI app with overridden collaborators."""

import json
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db
from app.core.dependencies import get_outfit_planner, get_product_resolver
from app.core.exceptions import GENERIC_PLANNING_MESSAGE, UpstreamUnavailable
from app.main import app
from app.services.catalog_search import get_search_client
from app.services.haul import SHUFFLE_QUERIES
from app.services.planner import OutfitPlanner
from app.services.resolver import ProductResolver
from tests.helpers import FakeLLM, FakeSearchClient, make_product, no_sleep

USER_HEADERS = {"X-User-Id": "user_api"}

QUERIES = ["linen shirt", "white jeans", "leather sandals", "straw bag"]


def reasoning_reply(prompt, system):
    if "Given this product" in prompt:
        return "Breezy and easy to style."
    return json.dumps(QUERIES)


class EnrichingSearchClient(FakeSearchClient):
    async def enrich(self, url):
        if "known" not in url:
            return None
        return {
            "description": "Soft linen",
            "images": ["https://img.test/linen.jpg"],
            "materials": ["linen"],
            "key_features": None,
        }


@pytest.fixture
def search_client():
    return EnrichingSearchClient(
        {query: [make_product(f"{query}-1", 60), make_product(f"{query}-2", 80)] for query in QUERIES}
    )


@pytest.fixture
def llm():
    return FakeLLM(reasoning_reply)


@pytest.fixture
async def api_client(db_engine, llm, search_client) -> AsyncGenerator[AsyncClient, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_outfit_planner] = lambda: OutfitPlanner(
        llm, max_attempts=0, sleep=no_sleep
    )
    app.dependency_overrides[get_product_resolver] = lambda: ProductResolver(
        search_client, max_attempts=0, sleep=no_sleep
    )
    app.dependency_overrides[get_search_client] = lambda: search_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def save(api_client, sample_outfit_ideas, headers=USER_HEADERS):
    body = {
        "outfit_ideas": [idea.model_dump(mode="json") for idea in sample_outfit_ideas],
        "quiz": {"styles": ["classic"]},
    }
    return await api_client.post("/api/v1/hauls", json=body, headers=headers)


async def test_generate_haul(api_client):
    response = await api_client.post(
        "/api/v1/hauls/generate",
        json={"body_type": "petite", "style_vibe": "coastal", "budget": "$$"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["queries"] == QUERIES
    assert len(data["products"]) == 8
    assert data["products"][0]["reason"] == "Breezy and easy to style."
    assert data["products"][0]["query"] == "linen shirt"


async def test_generate_haul_planning_failure_is_generic(api_client, llm):
    llm.responder = lambda prompt, system: "no json here"

    response = await api_client.post(
        "/api/v1/hauls/generate",
        json={"body_type": "petite", "style_vibe": "coastal"},
    )

    assert response.status_code == 500
    assert response.json()["detail"] == GENERIC_PLANNING_MESSAGE


async def test_generate_haul_search_auth_failure_is_unavailable(api_client, search_client):
    search_client.results["linen shirt"] = UpstreamUnavailable("Channel3", 402, "Payment Required")

    response = await api_client.post(
        "/api/v1/hauls/generate",
        json={"body_type": "petite", "style_vibe": "coastal"},
    )

    assert response.status_code == 503
    assert response.json()["detail"] == GENERIC_PLANNING_MESSAGE


async def test_generate_haul_rejects_unknown_refinement(api_client):
    response = await api_client.post(
        "/api/v1/hauls/generate",
        json={"body_type": "petite", "style_vibe": "coastal", "refinement": "more-sparkle"},
    )

    assert response.status_code == 422



async def test_shuffle_leaves_out_kept_products(api_client, search_client):
    search_client.results.update(
        {query: [make_product(f"s{i}-kept"), make_product(f"s{i}-new")] for i, query in enumerate(SHUFFLE_QUERIES)}
    )
    kept = [f"s{i}-kept" for i in range(len(SHUFFLE_QUERIES))]

    response = await api_client.post("/api/v1/hauls/shuffle", json={"kept_ids": kept, "count": 8})

    assert response.status_code == 200
    products = response.json()["products"]
    assert len(products) == 4
    assert all(p["id"].endswith("-new") for p in products)
    assert all(p["category"] for p in products)


async def test_shuffle_without_products_is_generic_failure(api_client):
    response = await api_client.post("/api/v1/hauls/shuffle", json={"count": 4})

    assert response.status_code == 500
    assert response.json()["detail"] == GENERIC_PLANNING_MESSAGE

async def test_save_requires_user(api_client, sample_outfit_ideas):
    response = await save(api_client, sample_outfit_ideas, headers={})

    assert response.status_code == 401


async def test_save_rejects_empty_outfits(api_client):
    response = await api_client.post(
        "/api/v1/hauls", json={"outfit_ideas": []}, headers=USER_HEADERS
    )

    assert response.status_code == 400


async def test_save_list_get_and_delete(api_client, sample_outfit_ideas):
    saved = await save(api_client, sample_outfit_ideas)
    assert saved.status_code == 201
    session_id = saved.json()["session_id"]
    assert len(saved.json()["outfit_ids"]) == 2

    listed = await api_client.get("/api/v1/hauls", headers=USER_HEADERS)
    assert listed.status_code == 200
    hauls = listed.json()
    assert [h["id"] for h in hauls] == [session_id]
    assert hauls[0]["quiz_data"] == {"styles": ["classic"]}
    assert [o["name"] for o in hauls[0]["outfits"]] == ["Office Polish", "Weekend Ease"]

    single = await api_client.get(f"/api/v1/hauls/{session_id}", headers=USER_HEADERS)
    assert single.status_code == 200
    assert single.json()["outfit_count"] == 2

    other_user = await api_client.get(f"/api/v1/hauls/{session_id}", headers={"X-User-Id": "someone"})
    assert other_user.status_code == 404

    deleted = await api_client.delete(f"/api/v1/hauls/{session_id}", headers=USER_HEADERS)
    assert deleted.status_code == 204

    missing = await api_client.get(f"/api/v1/hauls/{session_id}", headers=USER_HEADERS)
    assert missing.status_code == 404


async def test_shared_outfit_is_public(api_client, sample_outfit_ideas):
    await save(api_client, sample_outfit_ideas)
    outfits = (await api_client.get("/api/v1/outfits", headers=USER_HEADERS)).json()
    token = next(o["share_token"] for o in outfits if o["name"] == "Weekend Ease")

    response = await api_client.get(f"/api/v1/outfits/shared/{token}")

    assert response.status_code == 200
    assert [i["category"] for i in response.json()["items"]] == ["dress", "shoes"]


async def test_unknown_share_token_is_404(api_client):
    response = await api_client.get("/api/v1/outfits/shared/deadbeef")

    assert response.status_code == 404


async def test_enrich_product(api_client):
    found = await api_client.post("/api/v1/products/enrich", json={"url": "https://shop.test/known"})
    missing = await api_client.post("/api/v1/products/enrich", json={"url": "https://shop.test/gone"})

    assert found.status_code == 200
    assert found.json()["materials"] == ["linen"]
    assert missing.status_code == 502


async def test_health_endpoints(api_client):
    live = await api_client.get("/api/v1/health")
    ready = await api_client.get("/api/v1/health/ready")

    assert live.json()["status"] == "healthy"
    assert ready.status_code == 200
    assert ready.json()["services"] == {"reasoning": True, "search": True}
