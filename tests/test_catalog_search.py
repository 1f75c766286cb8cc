"""Tests for the product search client against a mocked HTTP transport."""

import json

import httpx
import pytest

from app.core.exceptions import UpstreamError, UpstreamUnavailable
from app.services.catalog_search import CatalogSearchClient, normalize_product


def search_client(handler) -> CatalogSearchClient:
    return CatalogSearchClient(
        api_key="test-key",
        base_url="https://search.test",
        transport=httpx.MockTransport(handler),
    )


def json_handler(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


async def test_search_normalizes_images_array_and_price_object():
    payload = [
        {
            "id": "c3-1",
            "title": "Linen Shirt",
            "brand_name": "Everlane",
            "images": [{"url": "https://img.test/1.jpg"}],
            "price": {"price": 68, "currency": "EUR"},
            "url": "https://shop.test/1",
        }
    ]
    seen = []
    client = search_client(json_handler(payload, seen=seen))

    products = await client.search("linen shirt", limit=2)

    assert len(products) == 1
    product = products[0]
    assert product.id == "c3-1"
    assert product.name == "Linen Shirt"
    assert product.brand == "Everlane"
    assert product.image == "https://img.test/1.jpg"
    assert product.price == 68
    assert product.currency == "EUR"
    assert product.buy_link == "https://shop.test/1"
    assert seen[0].url.path == "/v0/search"
    assert seen[0].headers["x-api-key"] == "test-key"


async def test_search_accepts_legacy_image_url_inside_results_object():
    payload = {
        "results": [
            {"id": "c3-2", "name": "Loafer", "image_url": "https://img.test/2.jpg", "price": 120}
        ]
    }
    client = search_client(json_handler(payload))

    products = await client.search("loafers")

    assert products[0].image == "https://img.test/2.jpg"
    assert products[0].price == 120
    assert products[0].currency == "USD"
    assert products[0].buy_link == "#"


async def test_non_array_response_is_empty_result():
    client = search_client(json_handler({"message": "unexpected"}))

    assert await client.search("anything") == []


async def test_request_body_clamps_limit_and_sets_filters():
    seen = []
    client = search_client(json_handler([], seen=seen))

    await client.search("trench coat", limit=50, price_min=50, price_max=150, gender="male")

    body = json.loads(seen[0].content)
    assert body["query"] == "trench coat"
    assert body["limit"] == 30
    assert body["filters"]["gender"] == "male"
    assert body["filters"]["price"] == {"min": 50, "max": 150}
    assert body["filters"]["availability"] == ["InStock", "LimitedAvailability"]


async def test_forbidden_maps_to_unavailable():
    client = search_client(json_handler({"detail": "Invalid API key"}, status_code=403))

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.search("anything")

    assert "403" in str(exc_info.value)


async def test_server_error_keeps_status_marker():
    client = search_client(json_handler({"detail": "overloaded"}, status_code=429))

    with pytest.raises(UpstreamError) as exc_info:
        await client.search("anything")

    assert not isinstance(exc_info.value, UpstreamUnavailable)
    assert "429" in str(exc_info.value)


async def test_timeout_is_upstream_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = search_client(handler)

    with pytest.raises(UpstreamError) as exc_info:
        await client.search("anything")

    assert exc_info.value.status_code is None


async def test_enrich_returns_details():
    payload = {
        "description": "Breathable linen",
        "images": [{"url": "https://img.test/a.jpg"}, {"url": "https://img.test/b.jpg"}],
        "materials": ["linen"],
        "key_features": ["relaxed fit"],
    }
    seen = []
    client = search_client(json_handler(payload, seen=seen))

    details = await client.enrich("https://shop.test/1")

    assert details["images"] == ["https://img.test/a.jpg", "https://img.test/b.jpg"]
    assert details["materials"] == ["linen"]
    assert seen[0].url.path == "/v0/enrich"


async def test_enrich_failure_returns_none():
    client = search_client(json_handler({"detail": "boom"}, status_code=500))

    assert await client.enrich("https://shop.test/1") is None


def test_result_without_id_is_skipped():
    assert normalize_product({"title": "Mystery"}) is None


def test_placeholder_image_when_none_given():
    product = normalize_product({"id": "x", "title": "Plain"})
    assert product.image == "/placeholder.png"


def test_oversized_fields_are_normalized():
    product = normalize_product(
        {
            "id": "long-1",
            "title": "  " + "Linen Shirt " * 60,
            "brand": "B" * 300,
            "price": {"price": 40, "currency": "usd"},
        }
    )

    assert len(product.name) == 500
    assert product.name.startswith("Linen Shirt")
    assert len(product.brand) == 200
    assert product.currency == "USD"


def test_unknown_currency_falls_back_to_usd():
    product = normalize_product({"id": "x", "title": "Tee", "price": {"price": 10, "currency": "EURO"}})
    assert product.currency == "USD"


def test_result_with_oversized_id_is_skipped():
    assert normalize_product({"id": "x" * 300, "title": "Tee"}) is None
