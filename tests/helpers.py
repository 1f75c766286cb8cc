"""Fakes and factories shared by the test modules."""

from typing import Callable, Dict, List, Optional

from app.api.v1.schemas.outfit import ProductPayload
from app.core.exceptions import UpstreamError


class FakeLLM:
    """
    Stand-in for ReasoningClient.

    `responder` maps (user_prompt, system_prompt) to a reply; raising from
    it simulates a failed call.
    """

    def __init__(self, responder: Callable[[str, Optional[str]], str]):
        self.responder = responder
        self.calls: List[Dict] = []

    async def complete(self, user_prompt, system_prompt=None, max_tokens=1024):
        self.calls.append(
            {"user_prompt": user_prompt, "system_prompt": system_prompt, "max_tokens": max_tokens}
        )
        return self.responder(user_prompt, system_prompt)


class FakeSearchClient:
    """
    Stand-in for CatalogSearchClient.

    `results` maps a query to products, or to an exception to raise.
    """

    def __init__(self, results: Dict[str, object]):
        self.results = results
        self.calls: List[Dict] = []

    async def search(self, query, limit=2, **filters):
        self.calls.append({"query": query, "limit": limit, **filters})
        outcome = self.results.get(query, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)[:limit]

    async def enrich(self, url):
        return None


async def no_sleep(seconds: float) -> None:
    return None


def make_product(external_id: str, price: float = 50.0, name: Optional[str] = None, **extra) -> ProductPayload:
    return ProductPayload(
        id=external_id,
        name=name or f"Product {external_id}",
        brand=extra.pop("brand", "TestBrand"),
        image=extra.pop("image", f"https://img.test/{external_id}.jpg"),
        price=price,
        buy_link=extra.pop("buy_link", f"https://shop.test/{external_id}"),
        **extra,
    )


def upstream_error(status_code: int = 500, service: str = "Channel3") -> UpstreamError:
    return UpstreamError(service, status_code, "boom")
