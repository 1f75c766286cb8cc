"""
Product resolver: turns planned queries into concrete products from the
search service, tolerating per-query failures.
"""
import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from app.api.v1.schemas.outfit import ProductPayload, ResolvedProduct
from app.core.config import settings
from app.core.exceptions import PlanningFailure, UpstreamUnavailable
from app.core.retry import run_with_retry
from app.services.catalog_search import CatalogSearchClient
from app.services.category import infer_category
from app.services.product_match import validate_product_match

logger = logging.getLogger(__name__)

# Budget tier -> price band used as search filter
BUDGET_RANGES = {
    "$": (20, 50),
    "$$": (50, 150),
    "$$$": (100, 350),
    "$$$$": (250, 1000),
    "$$$$$": (500, 10000),
}
DEFAULT_PRICE_BAND = (0, 10000)

FEMALE_TERMS = ("women's", "womens", "women", "ladies", "lady")
MALE_TERMS = ("men's", "mens", "men", "male")


def get_budget_range(budget: str) -> Optional[Tuple[float, float]]:
    return BUDGET_RANGES.get(budget)


def normalize_gender(value: Optional[str]) -> str:
    """Map quiz spellings ("women's", "mens", ...) onto female/male/unisex."""
    lowered = (value or "").strip().lower()
    if lowered in ("male", "men", "mens", "men's"):
        return "male"
    if lowered == "unisex":
        return "unisex"
    return "female"


def ensure_gender_in_query(query: str, gender: str = "female") -> str:
    """Prefix the query with a gender term unless it has one (unisex untouched)."""
    if gender == "unisex":
        return query
    lowered = query.lower()
    # "women" contains "men", so male terms must not match inside female ones
    if gender == "female":
        if any(term in lowered for term in FEMALE_TERMS):
            return query
        return f"women's {query}"
    if any(term in lowered for term in MALE_TERMS) and not any(
        term in lowered for term in FEMALE_TERMS
    ):
        return query
    return f"men's {query}"


def rank_products(
    products: Sequence[ProductPayload], price_min: float, price_max: float
) -> List[ProductPayload]:
    """
    Order products: in-budget first, then cheaper (but not too cheap) first.

    Stable for equal keys, so search order breaks ties.
    """
    def key(product: ProductPayload):
        in_range = price_min <= product.price <= price_max
        too_cheap = product.price < price_min
        return (0 if in_range else 1, 1 if too_cheap else 0, product.price)

    return sorted(products, key=key)


def filter_by_price(
    products: Sequence[ProductPayload], price_min: float, price_max: float
) -> List[ProductPayload]:
    return [p for p in products if price_min <= p.price <= price_max]


class ProductResolver:
    """Resolves queries to products with isolated per-query failures."""

    def __init__(
        self,
        search_client: CatalogSearchClient,
        max_attempts: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        sleep=None,
    ):
        self.search_client = search_client
        self.max_attempts = settings.RETRY_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.base_delay_ms = settings.RETRY_BASE_DELAY_MS if base_delay_ms is None else base_delay_ms
        self.sleep = sleep

    async def search(self, query: str, limit: int, **filters) -> List[ProductPayload]:
        """
        One search call with backoff.

        Returns an empty list when the query ultimately fails. Auth and
        billing failures are re-raised since every other query would fail too.
        """
        try:
            return await run_with_retry(
                lambda: self.search_client.search(query, limit, **filters),
                max_attempts=self.max_attempts,
                base_delay_ms=self.base_delay_ms,
                sleep=self.sleep,
            )
        except UpstreamUnavailable:
            raise
        except Exception as e:
            logger.error(f"Error searching for {query!r}: {type(e).__name__}: {e}")
            return []

    async def resolve_products(
        self,
        queries: Sequence[str],
        products_per_query: int,
        max_products: int,
        gender: str = "female",
    ) -> List[ResolvedProduct]:
        """
        Search each query in order and aggregate the results.

        Args:
            queries: Planned search queries
            products_per_query: Results requested per query
            max_products: Global cap applied after aggregation
            gender: Search gender filter

        Returns:
            Products tagged with their query and inferred category, truncated
            to `max_products` in query order

        Raises:
            PlanningFailure: If no query yields any product
        """
        resolved: List[ResolvedProduct] = []
        for query in queries:
            products = await self.search(query, products_per_query, gender=gender)
            if not products:
                logger.warning(f"No products found for query: {query!r}")
                continue
            for product in products:
                resolved.append(
                    ResolvedProduct(
                        **product.model_dump(exclude={"category"}),
                        category=infer_category(query, product.name),
                        query=query,
                    )
                )

        if not resolved:
            raise PlanningFailure("No products found for any query")

        if len(resolved) > max_products:
            logger.info(f"Keeping {max_products} of {len(resolved)} products")
        return resolved[:max_products]

    async def resolve_item_candidates(
        self,
        queries: Sequence[str],
        budget: str,
        gender: str,
        depth: Optional[int] = None,
        styles: Optional[Sequence[str]] = None,
    ) -> List[List[ProductPayload]]:
        """
        Ranked candidates for each planned item query, searched concurrently.

        Candidates are narrowed to the budget band, then to products that do
        not contradict the query or styles; each step is skipped when it would
        leave nothing. Result order matches `queries`; a failed query yields an
        empty list without affecting the others.
        """
        depth = depth or settings.OUTFIT_SEARCH_DEPTH
        price_min, price_max = get_budget_range(budget) or DEFAULT_PRICE_BAND

        async def candidates_for(query: str) -> List[ProductPayload]:
            enhanced = ensure_gender_in_query(query, gender)
            products = await self.search(
                enhanced,
                depth,
                price_min=price_min,
                price_max=price_max,
                gender=gender,
            )
            if not products:
                logger.warning(f"No products found for query: {enhanced!r}")
                return []
            pool = filter_by_price(products, price_min, price_max) or products
            matching = [p for p in pool if validate_product_match(p, enhanced, styles)]
            rejected = len(pool) - len(matching)
            if rejected:
                logger.info(f"Query {enhanced!r}: rejected {rejected} mismatched products")
            ranked = rank_products(matching or pool, price_min, price_max)
            logger.info(f"Query {enhanced!r}: {len(products)} products, {len(ranked)} candidates")
            return ranked

        return list(await asyncio.gather(*(candidates_for(q) for q in queries)))
