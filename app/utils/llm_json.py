"""
Best-effort structured decoding of reasoning-service text.

Ladder: strict decode of the whole text -> strip Markdown code fences and
extract the first bracketed span -> strict decode of that span -> ParsingError.
"""
import json
import logging
import re
from typing import Any, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from app.core.exceptions import ParsingError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Non-greedy for flat arrays of strings, greedy for nested objects
ARRAY_PATTERN = re.compile(r"\[[\s\S]*?\]")
OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
CODE_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fence markers such as ```json and ```."""
    return CODE_FENCE_PATTERN.sub("", text).strip()


def extract_json_span(text: str, opener: str) -> str:
    """
    Return the first JSON-looking span starting with `opener` ('[' or '{').

    Raises:
        ParsingError: If no such span exists
    """
    pattern = ARRAY_PATTERN if opener == "[" else OBJECT_PATTERN
    match = pattern.search(strip_code_fences(text))
    if not match:
        raise ParsingError(f"No JSON {opener!r} span found in response", raw_text=text)
    return match.group(0)


def _strict_decode(text: str, target: Type[T]) -> T:
    return TypeAdapter(target).validate_python(json.loads(text))


def decode_llm_json(text: str, target: Type[T], opener: str) -> T:
    """
    Decode reasoning-service output into `target`.

    Args:
        text: Raw response text
        target: Type to validate against (e.g., List[str] or a pydantic model)
        opener: '[' for arrays, '{' for objects

    Returns:
        The validated value

    Raises:
        ParsingError: If no rung of the ladder yields a valid value
    """
    try:
        return _strict_decode(text.strip(), target)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.debug(f"Direct JSON decode failed, trying extraction: {e}")

    span = extract_json_span(text, opener)
    try:
        return _strict_decode(span, target)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ParsingError(
            f"Extracted span did not decode as {getattr(target, '__name__', target)}: {e}",
            raw_text=text,
        ) from e


def preview(text: Any, limit: int = 500) -> str:
    """Truncated text for log lines."""
    return str(text)[:limit]
