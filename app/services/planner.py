"""
Outfit planner: turns style profiles into search queries and outfit plans
using the reasoning service.
"""
import logging
from typing import List, Optional

from app.api.v1.schemas.planning import (
    ItemCategory,
    OutfitPlan,
    PlannedOutfit,
)
from app.api.v1.schemas.style import QuizData, StyleProfile
from app.core.config import settings
from app.core.exceptions import PlanningFailure, UpstreamUnavailable
from app.core.retry import run_with_retry
from app.services.llm import ReasoningClient
from app.utils.llm_json import decode_llm_json, preview

logger = logging.getLogger(__name__)

MAX_SEARCH_QUERIES = 4
EXPECTED_OUTFIT_COUNT = 6
EXPECTED_ITEMS_PER_OUTFIT = 4

OUTFIT_SYSTEM_PROMPT = (
    "You are a professional personal stylist. You design complete, wearable "
    "outfits and describe each piece precisely enough to find it in an online "
    "store. You always answer with valid JSON only."
)


def build_search_query_prompt(profile: StyleProfile) -> str:
    """Instruction asking for 4-6 product search strings as a JSON array."""
    brands_text = profile.brands_text
    brand_hint = (
        f" Prioritize products from these brands when possible: {brands_text}."
        if profile.favorite_brands
        else ""
    )
    return (
        f"Based on this {profile.gender} style profile: Body Type: {profile.body_type}, "
        f"Style Vibe: {profile.style_vibe}, Budget: {profile.budget}, "
        f"Shopping For: {profile.shopping_for}, Favorite Brands: {brands_text}, "
        f"Color Preferences: {profile.color_preferences}\n\n"
        f"Generate 4-6 specific {profile.gender} product search queries that would create "
        f"cohesive outfits. Focus on {profile.style_vibe} aesthetic, "
        f"{profile.color_preferences} color palette, and {profile.budget} price range."
        f"{brand_hint} The queries should create a complete wardrobe - include tops, "
        "bottoms, outerwear, shoes, and accessories that work together.\n\n"
        "Return ONLY a valid JSON array of search strings, nothing else. Example format: "
        f'["{profile.style_vibe} {profile.color_preferences} blouse", '
        f'"tailored {profile.color_preferences} trousers", '
        f'"{profile.color_preferences} loafers", "structured handbag"]'
    )


def build_outfit_structure_prompt(quiz: QuizData) -> str:
    """Instruction asking for 6 outfits x 4 items as a JSON object."""
    brands = ", ".join(quiz.favorite_brands) if quiz.favorite_brands else "None specified"
    avoid = ", ".join(quiz.avoidances) if quiz.avoidances else "nothing in particular"
    must_haves = ", ".join(quiz.must_haves) if quiz.must_haves else "none"
    categories = ", ".join(c.value for c in ItemCategory)
    return (
        "Style profile:\n"
        f"- Styles: {', '.join(quiz.styles)}\n"
        f"- Occasions: {', '.join(quiz.occasions)}\n"
        f"- Body type: {quiz.body_type}\n"
        f"- Fit preference: {quiz.fit_preference or 'no preference'}\n"
        f"- Budget: {quiz.budget_range}\n"
        f"- Color preferences: {quiz.color_preferences}\n"
        f"- Favorite brands: {brands}\n"
        f"- Avoid: {avoid}\n"
        f"- Must-haves: {must_haves}\n\n"
        f"Design exactly {EXPECTED_OUTFIT_COUNT} outfits for these occasions. Each outfit has "
        f"exactly {EXPECTED_ITEMS_PER_OUTFIT} items: 1-2 main pieces (is_main true), "
        "exactly one pair of shoes and one accessory (is_main false).\n"
        f"Allowed categories: {categories}.\n"
        "For every item give a specific product search query (color, material, cut) "
        "and one sentence of reasoning. For every outfit give a 2-3 sentence "
        "stylist_blurb explaining why the pieces work together.\n\n"
        "Return ONLY a JSON object of this shape:\n"
        '{"outfits": [{"name": "...", "occasion": "...", "stylist_blurb": "...", '
        '"items": [{"category": "top", "query": "...", "reasoning": "...", '
        '"is_main": true}]}]}'
    )


def default_blurb(outfit_name: str) -> str:
    return (
        f"This {outfit_name} look works together through color harmony "
        "and complementary silhouettes."
    )


def fallback_reason(profile: StyleProfile) -> str:
    return f"Perfect for your {profile.style_vibe} style"


def validate_outfit_structure(outfit: PlannedOutfit) -> List[str]:
    """
    Report how a planned outfit departs from the 4-item shape.

    Returns:
        Human-readable problems; empty when the outfit is well formed
    """
    problems = []
    if len(outfit.items) != EXPECTED_ITEMS_PER_OUTFIT:
        problems.append(
            f"expected {EXPECTED_ITEMS_PER_OUTFIT} items, got {len(outfit.items)}"
        )
    shoes = sum(1 for item in outfit.items if item.category == ItemCategory.SHOES)
    if shoes != 1:
        problems.append(f"expected exactly one shoe item, got {shoes}")
    mains = sum(1 for item in outfit.items if item.is_main)
    if not 1 <= mains <= 2:
        problems.append(f"expected 1-2 main items, got {mains}")
    return problems


class OutfitPlanner:
    """Planning operations backed by the reasoning service."""

    def __init__(
        self,
        llm: ReasoningClient,
        max_attempts: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        sleep=None,
    ):
        self.llm = llm
        self.max_attempts = settings.RETRY_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.base_delay_ms = settings.RETRY_BASE_DELAY_MS if base_delay_ms is None else base_delay_ms
        self.sleep = sleep

    async def _retry(self, operation):
        return await run_with_retry(
            operation,
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            sleep=self.sleep,
        )

    async def plan_search_queries(self, profile: StyleProfile) -> List[str]:
        """
        Ask for 4-6 search queries and keep the first four.

        Raises:
            PlanningFailure: With a generic user message; the cause is only logged
        """
        prompt = build_search_query_prompt(profile)

        async def attempt() -> List[str]:
            text = await self.llm.complete(prompt, max_tokens=1024)
            queries = decode_llm_json(text, List[str], "[")
            queries = [q.strip() for q in queries if q and q.strip()]
            if not queries:
                raise PlanningFailure("Reasoning service returned no search queries")
            return queries[:MAX_SEARCH_QUERIES]

        try:
            queries = await self._retry(attempt)
        except Exception as e:
            logger.error(
                f"Search query planning failed: {type(e).__name__}: {e} "
                f"(raw: {preview(getattr(e, 'raw_text', ''))})",
                exc_info=True,
            )
            if isinstance(e, (PlanningFailure, UpstreamUnavailable)):
                raise
            raise PlanningFailure(f"Search query planning failed: {e}") from e

        logger.info(f"Planned {len(queries)} search queries: {queries}")
        return queries

    async def plan_outfit_structure(self, quiz: QuizData) -> List[PlannedOutfit]:
        """
        Ask for the full outfit plan (6 outfits x 4 items).

        Outfits missing a stylist blurb get a templated one; a missing or
        malformed overall structure is a PlanningFailure.
        """
        prompt = build_outfit_structure_prompt(quiz)

        async def attempt() -> OutfitPlan:
            text = await self.llm.complete(
                prompt, system_prompt=OUTFIT_SYSTEM_PROMPT, max_tokens=4096
            )
            return decode_llm_json(text, OutfitPlan, "{")

        try:
            plan = await self._retry(attempt)
        except Exception as e:
            logger.error(
                f"Outfit structure planning failed: {type(e).__name__}: {e} "
                f"(raw: {preview(getattr(e, 'raw_text', ''))})",
                exc_info=True,
            )
            if isinstance(e, (PlanningFailure, UpstreamUnavailable)):
                raise
            raise PlanningFailure(f"Outfit structure planning failed: {e}") from e

        for outfit in plan.outfits:
            if not outfit.stylist_blurb:
                logger.info(f"Backfilling missing stylist blurb for outfit '{outfit.name}'")
                outfit.stylist_blurb = default_blurb(outfit.name)

        if len(plan.outfits) != EXPECTED_OUTFIT_COUNT:
            logger.warning(
                f"Expected {EXPECTED_OUTFIT_COUNT} outfits, reasoning service returned {len(plan.outfits)}"
            )
        return plan.outfits

    async def explain_product_choice(
        self, product_name: str, brand: Optional[str], profile: StyleProfile
    ) -> str:
        """
        One-line reason why a product fits the profile.

        Never raises: any failure yields a templated fallback.
        """
        prompt = (
            f'Given this product: "{product_name}" by {brand or "an independent brand"}, '
            f"and this style profile ({profile.style_vibe} vibe, {profile.body_type} body type, "
            f"{profile.color_preferences} colors), generate a concise 1-line reason "
            "(max 15 words) why this item fits their style. Be specific and personal.\n\n"
            "Return ONLY the reason, no quotes or formatting."
        )

        async def attempt() -> str:
            return (await self.llm.complete(prompt, max_tokens=100)).strip().strip('"')

        try:
            reason = await self._retry(attempt)
        except Exception as e:
            logger.warning(
                f"Falling back to templated reason for {product_name!r}: {type(e).__name__}: {e}"
            )
            return fallback_reason(profile)
        return reason or fallback_reason(profile)

