"""Tests for ProductResolver: per-query isolation, caps and ranking."""

import pytest

from app.core.exceptions import PlanningFailure, UpstreamUnavailable
from app.services.resolver import (
    ProductResolver,
    ensure_gender_in_query,
    get_budget_range,
    normalize_gender,
    rank_products,
)
from tests.helpers import FakeSearchClient, make_product, no_sleep, upstream_error


def resolver_for(results) -> ProductResolver:
    return ProductResolver(FakeSearchClient(results), max_attempts=1, base_delay_ms=1, sleep=no_sleep)


async def test_failing_query_does_not_abort_batch():
    resolver = resolver_for(
        {
            "silk blouse": [make_product("p1", name="Silk Blouse")],
            "leather boots": upstream_error(500),
            "tote bag": [make_product("p2", name="Canvas Tote")],
        }
    )

    products = await resolver.resolve_products(
        ["silk blouse", "leather boots", "tote bag"], products_per_query=2, max_products=12
    )

    assert [p.id for p in products] == ["p1", "p2"]
    assert products[0].query == "silk blouse"
    assert products[0].category == "top"
    assert products[1].category == "accessories"


async def test_failed_query_is_retried_before_giving_up():
    search = FakeSearchClient({"boots": upstream_error(503), "tee": [make_product("p1")]})
    resolver = ProductResolver(search, max_attempts=2, base_delay_ms=1, sleep=no_sleep)

    await resolver.resolve_products(["boots", "tee"], products_per_query=2, max_products=12)

    assert [c["query"] for c in search.calls] == ["boots", "boots", "boots", "tee"]


async def test_no_products_at_all_is_planning_failure():
    resolver = resolver_for({"a": upstream_error(500), "b": []})

    with pytest.raises(PlanningFailure):
        await resolver.resolve_products(["a", "b"], products_per_query=2, max_products=12)


async def test_auth_failure_is_not_absorbed():
    resolver = resolver_for({"a": UpstreamUnavailable("Channel3", 403, "bad key")})

    with pytest.raises(UpstreamUnavailable):
        await resolver.resolve_products(["a"], products_per_query=2, max_products=12)


async def test_results_are_capped_in_query_order():
    results = {
        f"q{i}": [make_product(f"q{i}-{j}") for j in range(3)] for i in range(4)
    }
    resolver = resolver_for(results)

    products = await resolver.resolve_products(
        list(results), products_per_query=3, max_products=5
    )

    assert [p.id for p in products] == ["q0-0", "q0-1", "q0-2", "q1-0", "q1-1"]


async def test_item_candidates_rank_in_budget_first_and_keep_query_order():
    search = FakeSearchClient(
        {
            "women's trench coat": [
                make_product("too-cheap", 10),
                make_product("pricey", 400),
                make_product("mid", 120),
                make_product("low-in-band", 60),
            ],
            "women's loafers": upstream_error(500),
        }
    )
    resolver = ProductResolver(search, max_attempts=0, sleep=no_sleep)

    candidates = await resolver.resolve_item_candidates(
        ["trench coat", "women's loafers"], budget="$$", gender="female", depth=10
    )

    assert [p.id for p in candidates[0]] == ["low-in-band", "mid"]
    assert candidates[1] == []
    first_call = next(c for c in search.calls if c["query"] == "women's trench coat")
    assert first_call["price_min"] == 50
    assert first_call["price_max"] == 150
    assert first_call["limit"] == 10


async def test_item_candidates_fall_back_to_all_results_when_none_in_budget():
    search = FakeSearchClient(
        {"men's blazer": [make_product("b-600", 600), make_product("b-20", 20), make_product("b-300", 300)]}
    )
    resolver = ProductResolver(search, max_attempts=0, sleep=no_sleep)

    candidates = await resolver.resolve_item_candidates(["blazer"], budget="$$", gender="male")

    assert [p.id for p in candidates[0]] == ["b-300", "b-600", "b-20"]


async def test_item_candidates_drop_products_contradicting_query_or_styles():
    search = FakeSearchClient(
        {
            "women's long sleeve tee": [
                make_product("tank", 55, name="Ribbed Tank"),
                make_product("striped", 60, name="Long Sleeve Stripe Tee"),
                make_product("plain", 90, name="Long Sleeve Tee"),
            ],
        }
    )
    resolver = ProductResolver(search, max_attempts=0, sleep=no_sleep)

    candidates = await resolver.resolve_item_candidates(
        ["long sleeve tee"], budget="$$", gender="female", styles=["minimalist"]
    )

    assert [p.id for p in candidates[0]] == ["plain"]


async def test_item_candidates_keep_unvalidated_results_when_nothing_matches():
    search = FakeSearchClient(
        {"women's midi skirt": [make_product("m2", 90, name="Mini Skirt"), make_product("m1", 60, name="Short Skirt")]}
    )
    resolver = ProductResolver(search, max_attempts=0, sleep=no_sleep)

    candidates = await resolver.resolve_item_candidates(["midi skirt"], budget="$$", gender="female")

    assert [p.id for p in candidates[0]] == ["m1", "m2"]


def test_rank_products_orders_by_band_then_price():
    ranked = rank_products(
        [make_product("a", 200), make_product("b", 30), make_product("c", 80)], 50, 150
    )
    assert [p.id for p in ranked] == ["c", "a", "b"]


@pytest.mark.parametrize(
    "query,gender,expected",
    [
        ("silk blouse", "female", "women's silk blouse"),
        ("Women's silk blouse", "female", "Women's silk blouse"),
        ("oxford shirt", "male", "men's oxford shirt"),
        ("men's oxford shirt", "male", "men's oxford shirt"),
        ("canvas tote", "unisex", "canvas tote"),
    ],
)
def test_ensure_gender_in_query(query, gender, expected):
    assert ensure_gender_in_query(query, gender) == expected


def test_normalize_gender():
    assert normalize_gender("womens") == "female"
    assert normalize_gender("Men's") == "male"
    assert normalize_gender("unisex") == "unisex"
    assert normalize_gender(None) == "female"


def test_budget_ranges():
    assert get_budget_range("$") == (20, 50)
    assert get_budget_range("$$$$$") == (500, 10000)
    assert get_budget_range("free") is None
