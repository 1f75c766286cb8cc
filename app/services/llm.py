"""
Reasoning service client backed by the Anthropic Messages API.

Reference: https://docs.anthropic.com/en/api/messages
"""
import logging
from functools import lru_cache
from typing import Optional

import anthropic

from app.core.config import settings
from app.core.exceptions import ParsingError, UpstreamError, UpstreamUnavailable

logger = logging.getLogger(__name__)

SERVICE_NAME = "Anthropic"


class ReasoningClient:
    """
    Thin wrapper that turns a prompt into a single block of text.

    SDK failures are converted to UpstreamError / UpstreamUnavailable so the
    retry executor can classify them by status.
    """

    def __init__(
        self,
        client: Optional[anthropic.AsyncAnthropic] = None,
        model: Optional[str] = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY,
            timeout=settings.EXTERNAL_TIMEOUT_SECONDS,
            max_retries=0,  # retries are handled by run_with_retry
        )
        self.model = model or settings.ANTHROPIC_MODEL

    async def complete(
        self,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1024,
    ) -> str:
        """
        Send one user prompt and return the text of the first content block.

        Raises:
            UpstreamUnavailable: For 401/402/403 answers
            UpstreamError: For any other API, timeout or connection failure
            ParsingError: If the first block is not text
        """
        request = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            request["system"] = system_prompt

        try:
            message = await self.client.messages.create(**request)
        except anthropic.APIStatusError as e:
            if e.status_code in (401, 402, 403):
                raise UpstreamUnavailable(SERVICE_NAME, e.status_code, e.message) from e
            raise UpstreamError(SERVICE_NAME, e.status_code, e.message) from e
        except anthropic.APITimeoutError as e:
            raise UpstreamError(SERVICE_NAME, None, "request timed out") from e
        except anthropic.APIConnectionError as e:
            raise UpstreamError(SERVICE_NAME, None, "connection failed") from e

        if not message.content:
            raise ParsingError("Empty response from reasoning service")

        block = message.content[0]
        if getattr(block, "type", None) != "text":
            raise ParsingError(
                f"Unexpected response block type from reasoning service: {getattr(block, 'type', None)}"
            )

        return block.text


@lru_cache()
def get_reasoning_client() -> ReasoningClient:
    """
    Get a singleton ReasoningClient instance.

    Reference: https://docs.python.org/3/library/functools.html#functools.lru_cache
    """
    return ReasoningClient()
