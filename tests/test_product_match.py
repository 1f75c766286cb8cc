"""Tests for rejecting search results that contradict the planned query."""

import pytest

from app.services.product_match import validate_product_match, wants_minimal
from tests.helpers import make_product


@pytest.mark.parametrize(
    "query,title,expected",
    [
        ("long sleeve top", "Ribbed Tank Top", False),
        ("long sleeve top", "Long Sleeve Crew Top", True),
        ("short sleeve tee", "Long Sleeve Tee", False),
        ("sleeveless shell", "Puff Sleeve Blouse", False),
        ("sleeveless shell", "Sleeveless Silk Shell", True),
        ("fitted blazer", "Oversized Blazer", False),
        ("oversized shirt", "Slim Poplin Shirt", False),
        ("linen dress", "Linen Shirt", False),
        ("linen dress", "Linen Shirt Dress", True),
        ("chunky sweater", "Oxford Shirt", False),
        ("satin midi skirt", "Satin Mini Skirt", False),
        ("mini skirt", "Pleated Maxi Skirt", False),
        ("cream turtleneck", "V-Neck Pullover", False),
        ("v-neck cardigan", "Turtleneck Cardigan", False),
        ("wide leg trousers", "Tapered Trousers", False),
        ("skinny jeans", "Straight Leg Jeans", False),
        ("black silk top", "White Silk Top", False),
        ("black silk top", "Black and White Silk Top", True),
        ("navy chinos", "Cream Chinos", False),
    ],
)
def test_title_conflicts(query, title, expected):
    assert validate_product_match(make_product("p1", name=title), query) is expected


def test_minimalist_styles_reject_patterns_anywhere_in_product_text():
    floral = make_product("p1", name="Midi Skirt", description="Soft floral print")
    plain = make_product("p2", name="Midi Skirt", description="Solid crepe")

    assert validate_product_match(floral, "midi skirt", ["Minimalist"]) is False
    assert validate_product_match(plain, "midi skirt", ["Minimalist"]) is True
    assert validate_product_match(floral, "midi skirt", ["romantic"]) is True


def test_premium_material_must_appear_in_materials():
    synthetic = make_product("p1", name="Crew Sweater", materials=["Polyester", "Acrylic"])
    blend = make_product("p2", name="Crew Sweater", materials=["Cashmere blend"])
    unknown = make_product("p3", name="Crew Sweater")

    assert validate_product_match(synthetic, "cashmere crew sweater") is False
    assert validate_product_match(blend, "cashmere crew sweater") is True
    assert validate_product_match(unknown, "cashmere crew sweater") is True


def test_material_conflict_in_description():
    coat = make_product("p1", name="Grey Coat", description="Shell: 100% polyester")
    wool_mix = make_product("p2", name="Grey Coat", description="60% wool, 40% polyester")

    assert validate_product_match(coat, "grey wool coat") is False
    assert validate_product_match(wool_mix, "grey wool coat") is True


def test_plain_product_passes():
    assert validate_product_match(make_product("p1", name="Canvas Tote"), "women's tan tote") is True


def test_wants_minimal():
    assert wants_minimal(["classic", "minimal chic"]) is True
    assert wants_minimal(["boho"]) is False
    assert wants_minimal(None) is False
