"""
Haul generation: profile -> planned queries/outfits -> resolved products.
"""
import asyncio
import logging
import math
import random
import secrets
import time
from typing import List, Optional

from app.api.v1.schemas.haul import (
    GenerateHaulResponse,
    GenerateOutfitsResponse,
    ShuffleResponse,
)
from app.api.v1.schemas.outfit import (
    OutfitIdea,
    OutfitItemIdea,
    PriceRange,
    ProductPayload,
    ResolvedProduct,
)
from app.api.v1.schemas.planning import PlannedOutfit
from app.api.v1.schemas.style import QuizData, StyleProfile
from app.core.config import settings
from app.core.exceptions import PlanningFailure
from app.services.category import infer_category
from app.services.planner import OutfitPlanner, validate_outfit_structure
from app.services.refinement import Refinement, apply_refinement
from app.services.resolver import ProductResolver, normalize_gender

logger = logging.getLogger(__name__)

# Broad queries for the shuffle mix
SHUFFLE_QUERIES = (
    "women's blouse", "women's pants", "women's dress", "women's jacket",
    "women's shoes", "women's bag", "women's accessories", "women's jewelry",
    "women's top", "women's skirt", "women's sweater", "women's blazer",
    "women's boots", "women's heels", "women's sandals", "women's handbag",
    "women's earrings", "women's ring", "women's necklace", "women's belt",
)
SHUFFLE_PRODUCTS_PER_QUERY = 2


def new_haul_id() -> str:
    """Client-facing id for an unsaved haul."""
    return f"haul_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def outfit_prices(items: List[OutfitItemIdea]) -> tuple[float, Optional[PriceRange]]:
    """
    Total of main product prices and the range over all positive
    main and variant prices.
    """
    total = sum(item.product.price for item in items)
    prices = [
        price
        for item in items
        for price in [item.product.price, *(v.price for v in item.variants)]
        if price > 0
    ]
    price_range = PriceRange(min=min(prices), max=max(prices)) if prices else None
    return round(total, 2), price_range


class HaulService:
    """Orchestrates planning and product resolution for a generation request."""

    def __init__(
        self,
        planner: OutfitPlanner,
        resolver: ProductResolver,
        rng: Optional[random.Random] = None,
    ):
        self.planner = planner
        self.resolver = resolver
        self.rng = rng or random.Random()

    async def generate_haul(
        self, profile: StyleProfile, refinement: Optional[Refinement] = None
    ) -> GenerateHaulResponse:
        """
        Quick-quiz flow: plan queries, search, cap, then explain each product.

        Reasoning calls are only spent on the products kept after the cap.

        Raises:
            PlanningFailure: If planning fails or no product is found
        """
        planned_profile, options = apply_refinement(profile, refinement)
        if refinement:
            logger.info(f"Applied refinement {refinement.value}: {planned_profile.model_dump()}")

        queries = await self.planner.plan_search_queries(planned_profile)
        products = await self.resolver.resolve_products(
            queries,
            products_per_query=options.products_per_query,
            max_products=options.max_products,
            gender=normalize_gender(planned_profile.gender),
        )

        reasons = await asyncio.gather(
            *(
                self.planner.explain_product_choice(p.name, p.brand, planned_profile)
                for p in products
            )
        )
        explained: List[ResolvedProduct] = [
            product.model_copy(update={"reason": reason})
            for product, reason in zip(products, reasons)
        ]

        haul_id = new_haul_id()
        logger.info(f"Generated haul {haul_id} with {len(explained)} products")
        return GenerateHaulResponse(
            haul_id=haul_id,
            products=explained,
            queries=queries,
            profile=planned_profile,
        )

    def _select_outfits(self, planned: List[PlannedOutfit]) -> List[PlannedOutfit]:
        """Log structural problems; in strict mode drop offending outfits."""
        kept = []
        for outfit in planned:
            problems = validate_outfit_structure(outfit)
            if problems:
                logger.warning(f"Outfit '{outfit.name}' is malformed: {'; '.join(problems)}")
                if settings.STRICT_OUTFIT_STRUCTURE:
                    continue
            kept.append(outfit)
        if not kept:
            raise PlanningFailure("Every planned outfit failed structural validation")
        return kept

    async def generate_outfits(
        self, quiz: QuizData, gender: Optional[str] = None
    ) -> GenerateOutfitsResponse:
        """
        Full quiz flow: plan outfits, search every item, pick the best
        product per item and keep the rest as variants.

        Raises:
            PlanningFailure: If planning fails or no item resolves to a product
        """
        search_gender = normalize_gender(gender or quiz.gender)
        planned = self._select_outfits(await self.planner.plan_outfit_structure(quiz))

        queries = [item.query for outfit in planned for item in outfit.items]
        logger.info(f"Total items to search: {len(queries)}")
        candidates = iter(
            await self.resolver.resolve_item_candidates(
                queries,
                budget=quiz.budget_range,
                gender=search_gender,
                styles=quiz.styles,
            )
        )

        outfit_ideas: List[OutfitIdea] = []
        for outfit in planned:
            items: List[OutfitItemIdea] = []
            for item in outfit.items:
                ranked: List[ProductPayload] = next(candidates)
                if not ranked:
                    continue
                items.append(
                    OutfitItemIdea(
                        category=item.category.value,
                        reasoning=item.reasoning or None,
                        is_main=bool(item.is_main),
                        product=ranked[0],
                        variants=ranked[1:],
                    )
                )
            if not items:
                logger.warning(f"Dropping outfit '{outfit.name}': no item found a product")
                continue
            total_price, price_range = outfit_prices(items)
            outfit_ideas.append(
                OutfitIdea(
                    name=outfit.name,
                    occasion=outfit.occasion or None,
                    stylist_blurb=outfit.stylist_blurb,
                    items=items,
                    total_price=total_price,
                    price_range=price_range,
                )
            )

        if not outfit_ideas:
            raise PlanningFailure("No products found for any planned item")

        all_products = [item.product for idea in outfit_ideas for item in idea.items]
        haul_id = new_haul_id()
        logger.info(
            f"Generated haul {haul_id}: {len(outfit_ideas)} outfits, {len(all_products)} products"
        )
        return GenerateOutfitsResponse(
            haul_id=haul_id,
            outfit_ideas=outfit_ideas,
            products=all_products,
            quiz=quiz,
        )

    async def shuffle(self, kept_ids: List[str], count: int = 12) -> ShuffleResponse:
        """
        Random product mix from broad category queries.

        Searches ceil(count / 2) random queries sequentially, skips products
        in `kept_ids` and tags each result with its inferred category.

        Raises:
            PlanningFailure: If no product is left
        """
        kept = set(kept_ids)
        queries = self.rng.sample(SHUFFLE_QUERIES, min(math.ceil(count / 2), len(SHUFFLE_QUERIES)))

        found: List[ProductPayload] = []
        for query in queries:
            products = await self.resolver.search(query, SHUFFLE_PRODUCTS_PER_QUERY)
            found.extend(
                product.model_copy(update={"category": infer_category(query, product.name)})
                for product in products
                if product.id not in kept
            )

        self.rng.shuffle(found)
        if not found:
            raise PlanningFailure("Shuffle found no products")
        logger.info(f"Shuffled {min(len(found), count)} of {len(found)} products ({len(kept)} kept)")
        return ShuffleResponse(products=found[:count])
