"""
Product search client for the Channel3 API
Uses httpx against the REST endpoints
Reference: https://docs.trychannel3.com
"""
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx

from app.api.v1.schemas.outfit import MAX_EXTERNAL_ID_LENGTH, ProductPayload
from app.core.config import settings
from app.core.exceptions import UpstreamError, UpstreamUnavailable
from app.utils.llm_json import preview

logger = logging.getLogger(__name__)

SERVICE_NAME = "Channel3"
MAX_SEARCH_LIMIT = 30  # API maximum
PLACEHOLDER_IMAGE = "/placeholder.png"
DEFAULT_AVAILABILITY = ["InStock", "LimitedAvailability"]


def _first_image(raw: Dict[str, Any]) -> str:
    """
    First image URL of a raw product.

    Order: images[] (objects or strings) -> image_urls[] -> image_url.
    """
    images = raw.get("images")
    if isinstance(images, list) and images:
        first = images[0]
        if isinstance(first, dict):
            return first.get("url") or PLACEHOLDER_IMAGE
        return str(first)
    image_urls = raw.get("image_urls")
    if isinstance(image_urls, list) and image_urls:
        return str(image_urls[0])
    if raw.get("image_url"):
        return str(raw["image_url"])
    return PLACEHOLDER_IMAGE


def _price_and_currency(raw: Dict[str, Any]) -> tuple[float, str]:
    price_obj = raw.get("price")
    if isinstance(price_obj, dict):
        amount = price_obj.get("price", price_obj.get("amount")) or 0
        currency = price_obj.get("currency") or "USD"
    else:
        amount = price_obj or 0
        currency = "USD"
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        amount = 0.0
    return max(amount, 0.0), currency


def _string_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, list):
        return [str(v) for v in value if v]
    return None


def normalize_product(raw: Dict[str, Any]) -> Optional[ProductPayload]:
    """
    Convert one raw search result into a ProductPayload.

    Results without an id are skipped: without an external identity
    the product cannot be deduplicated.
    """
    external_id = raw.get("id")
    if not external_id:
        logger.warning(f"Skipping search result without id: {preview(raw, 200)}")
        return None
    if len(str(external_id)) > MAX_EXTERNAL_ID_LENGTH:
        logger.warning(f"Skipping search result with oversized id: {preview(external_id, 80)}")
        return None
    price, currency = _price_and_currency(raw)
    return ProductPayload(
        id=str(external_id),
        name=str(raw.get("title") or raw.get("name") or "").strip() or "Product",
        brand=raw.get("brand_name") or raw.get("brand"),
        image=_first_image(raw),
        price=price,
        currency=currency,
        buy_link=raw.get("url") or "#",
        description=raw["description"] if isinstance(raw.get("description"), str) else None,
        materials=_string_list(raw.get("materials")),
        key_features=_string_list(raw.get("key_features")),
    )


def extract_results(data: Any) -> Optional[List[Dict[str, Any]]]:
    """
    Pull the result list out of a search response.

    The API may answer with an array, {"results": [...]} or {"products": [...]}.
    Returns None for any other shape.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("results", "products"):
            if isinstance(data.get(key), list):
                return data[key]
    return None


class CatalogSearchClient:
    """
    Client for the product search and enrichment endpoints.

    A transport can be injected for tests.
    Reference: https://www.python-httpx.org/advanced/transports/
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.CHANNEL3_API_KEY
        self.base_url = (base_url or settings.CHANNEL3_API_URL).rstrip("/")
        self.transport = transport
        if not self.api_key:
            raise ValueError("CHANNEL3_API_KEY must be set")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.EXTERNAL_TIMEOUT_SECONDS,
            transport=self.transport,
            headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """Turn a non-2xx answer into a status-marked UpstreamError."""
        if response.is_success:
            return
        try:
            body = response.json()
            detail = body.get("detail") if isinstance(body, dict) else None
            detail = str(detail or body)
        except ValueError:
            detail = response.text
        status_code = response.status_code
        if status_code in (401, 402, 403):
            raise UpstreamUnavailable(SERVICE_NAME, status_code, detail)
        raise UpstreamError(SERVICE_NAME, status_code, detail)

    async def search(
        self,
        query: str,
        limit: int = 2,
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        gender: str = "female",
        availability: Optional[List[str]] = None,
    ) -> List[ProductPayload]:
        """
        Search products for one query.

        Args:
            query: Free-text search query
            limit: Number of results (clamped to the API maximum)
            price_min: Optional lower price bound
            price_max: Optional upper price bound
            gender: female, male or unisex
            availability: Stock states to include (default: in stock / limited)

        Returns:
            Normalized products; empty list for an unexpected response shape

        Raises:
            UpstreamUnavailable: For 401/402/403 answers
            UpstreamError: For any other failure, including timeouts
        """
        filters: Dict[str, Any] = {
            "gender": gender,
            "availability": availability or DEFAULT_AVAILABILITY,
        }
        if price_min is not None or price_max is not None:
            filters["price"] = {}
            if price_min is not None:
                filters["price"]["min"] = price_min
            if price_max is not None:
                filters["price"]["max"] = price_max

        body = {
            "query": query,
            "limit": min(limit, MAX_SEARCH_LIMIT),
            "filters": filters,
        }

        try:
            async with self._client() as client:
                response = await client.post("/v0/search", json=body)
        except httpx.TimeoutException as e:
            raise UpstreamError(SERVICE_NAME, None, f"search timed out for {query!r}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(SERVICE_NAME, None, f"{type(e).__name__}: {e}") from e

        self._raise_for_status(response)
        data = response.json()
        logger.debug(f"{SERVICE_NAME} response for {query!r}: {preview(data)}")

        results = extract_results(data)
        if results is None:
            logger.warning(
                f"{SERVICE_NAME} returned unexpected format for {query!r}: {preview(data)}"
            )
            return []

        products = [p for p in (normalize_product(raw) for raw in results if isinstance(raw, dict)) if p]
        logger.info(f"{SERVICE_NAME}: Found {len(products)} products for query {query!r}")
        return products

    async def enrich(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Fetch extra details (description, images, materials) for a product page.

        Returns:
            Dict with description, images, materials and key_features,
            or None if the call fails
        """
        try:
            async with self._client() as client:
                response = await client.post("/v0/enrich", json={"url": url})
            self._raise_for_status(response)
            data = response.json()
        except (httpx.HTTPError, UpstreamError, ValueError) as e:
            logger.error(f"Error enriching product {url}: {type(e).__name__}: {e}", exc_info=True)
            return None

        images = [img.get("url") for img in data.get("images") or [] if isinstance(img, dict) and img.get("url")]
        if not images:
            images = list(data.get("image_urls") or [])

        return {
            "description": data.get("description"),
            "images": images,
            "materials": data.get("materials"),
            "key_features": data.get("key_features"),
        }


@lru_cache()
def get_search_client() -> CatalogSearchClient:
    """Get a singleton CatalogSearchClient instance."""
    return CatalogSearchClient()
