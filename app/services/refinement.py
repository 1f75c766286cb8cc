"""
Refinements applied to a style profile before re-planning a haul.

All transitions are table lookups: the budget ladder has a floor at the
cheapest tier and the color preference cycles through a fixed ring.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from app.api.v1.schemas.style import StyleProfile
from app.core.config import settings


class Refinement(str, Enum):
    """Named refinements a user can request on a haul."""

    MORE_CASUAL = "more-casual"
    DIFFERENT_COLORS = "different-colors"
    LOWER_PRICES = "lower-prices"
    MORE_OPTIONS = "more-options"


class BudgetTier(str, Enum):
    """Budget tiers from cheapest to most expensive."""

    BUDGET = "$"
    MODERATE = "$$"
    PREMIUM = "$$$"
    LUXURY = "$$$$"
    SPLURGE = "$$$$$"


class ColorPreference(str, Enum):
    """Color preferences in ring order."""

    MIXED = "mixed"
    NEUTRAL = "neutral"
    BOLD = "bold"
    PASTEL = "pastel"


BUDGET_LADDER = list(BudgetTier)
COLOR_RING = list(ColorPreference)


@dataclass(frozen=True)
class SearchOptions:
    """How many products to fetch per query and how many to keep overall."""

    products_per_query: int
    max_products: int


def default_search_options() -> SearchOptions:
    return SearchOptions(
        products_per_query=settings.HAUL_PRODUCTS_PER_QUERY,
        max_products=settings.HAUL_MAX_PRODUCTS,
    )


def step_down_budget(budget: str) -> str:
    """One tier cheaper; '$' stays '$'. Unknown tiers are returned unchanged."""
    try:
        index = BUDGET_LADDER.index(BudgetTier(budget))
    except ValueError:
        return budget
    return BUDGET_LADDER[max(index - 1, 0)].value


def next_color(color: str) -> str:
    """
    Next color preference on the ring mixed -> neutral -> bold -> pastel -> mixed.

    Unknown values are treated as 'mixed'.
    """
    try:
        index = COLOR_RING.index(ColorPreference(color.strip().lower()))
    except ValueError:
        index = 0
    return COLOR_RING[(index + 1) % len(COLOR_RING)].value


def casualize(style_vibe: str) -> str:
    """Prefix the vibe with 'casual' unless it already mentions it."""
    if "casual" in style_vibe.lower():
        return style_vibe
    return f"casual {style_vibe}"


def apply_refinement(
    profile: StyleProfile, refinement: Optional[Refinement]
) -> Tuple[StyleProfile, SearchOptions]:
    """
    Apply a refinement to a profile.

    Args:
        profile: Profile the previous haul was generated from
        refinement: Requested refinement (None leaves everything as is)

    Returns:
        The profile to plan with and the search options to use
    """
    options = default_search_options()

    if refinement is None:
        return profile, options

    if refinement == Refinement.MORE_CASUAL:
        return profile.model_copy(update={"style_vibe": casualize(profile.style_vibe)}), options

    if refinement == Refinement.DIFFERENT_COLORS:
        return (
            profile.model_copy(update={"color_preferences": next_color(profile.color_preferences)}),
            options,
        )

    if refinement == Refinement.LOWER_PRICES:
        return profile.model_copy(update={"budget": step_down_budget(profile.budget)}), options

    # MORE_OPTIONS widens the search instead of changing the profile
    return profile, SearchOptions(
        products_per_query=settings.HAUL_MORE_OPTIONS_PRODUCTS_PER_QUERY,
        max_products=settings.HAUL_MORE_OPTIONS_MAX_PRODUCTS,
    )
