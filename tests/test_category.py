"""Tests for keyword-based category inference."""

import pytest

from app.services.category import infer_category


@pytest.mark.parametrize(
    "query,name,expected",
    [
        ("women's leather boots", "Ankle Boot", "shoes"),
        ("structured handbag", "Tote", "accessories"),
        ("silk blouse", "Blouse", "top"),
        ("wide leg trousers", "Palazzo", "bottom"),
        ("camel wool coat", "Overcoat", "outerwear"),
        ("gold hoops", "Statement Earring", "accessories"),
        ("linen set", "Lounge Set", "other"),
    ],
)
def test_infer_category(query, name, expected):
    assert infer_category(query, name) == expected


def test_earlier_rule_wins_when_several_match():
    # jacket (outerwear) is checked before shoe
    assert infer_category("jacket and shoe bundle", "Bundle") == "outerwear"


def test_matching_is_case_insensitive():
    assert infer_category("CHELSEA BOOTS", "") == "shoes"


def test_name_is_used_when_query_has_no_keyword():
    assert infer_category("something for fall", "Cropped Jacket") == "outerwear"


def test_empty_input_is_other():
    assert infer_category("", "") == "other"
