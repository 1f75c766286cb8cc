"""Tests for decoding JSON out of reasoning-service text."""

from typing import List

import pytest

from app.api.v1.schemas.planning import OutfitPlan
from app.core.exceptions import ParsingError, PlanningFailure
from app.utils.llm_json import decode_llm_json, extract_json_span, strip_code_fences


def test_direct_array_decode():
    assert decode_llm_json('["a", "b"]', List[str], "[") == ["a", "b"]


def test_array_embedded_in_prose():
    text = 'Here are some ideas: ["linen shirt", "white sneakers"] Enjoy!'
    assert decode_llm_json(text, List[str], "[") == ["linen shirt", "white sneakers"]


def test_fenced_object_decode():
    text = (
        "```json\n"
        '{"outfits": [{"name": "Desk to Dinner", "items": '
        '[{"category": "Blouse", "query": "silk blouse", "isMain": true}]}]}\n'
        "```"
    )
    plan = decode_llm_json(text, OutfitPlan, "{")
    item = plan.outfits[0].items[0]
    assert item.category.value == "top"
    assert item.is_main is True


def test_missing_span_raises_parsing_error_with_raw_text():
    with pytest.raises(ParsingError) as exc_info:
        decode_llm_json("I cannot help with that.", List[str], "[")
    assert exc_info.value.raw_text == "I cannot help with that."
    assert isinstance(exc_info.value, PlanningFailure)


def test_span_with_wrong_shape_raises_parsing_error():
    with pytest.raises(ParsingError):
        decode_llm_json('{"outfits": []}', OutfitPlan, "{")


def test_strip_code_fences():
    assert strip_code_fences("```json\n[1]\n```") == "[1]"


def test_extract_object_span_is_greedy():
    text = 'prefix {"a": {"b": 1}} suffix'
    assert extract_json_span(text, "{") == '{"a": {"b": 1}}'
