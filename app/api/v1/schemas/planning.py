"""
Schemas for reasoning-service output: planned outfits and items.
"""

import logging
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class ItemCategory(str, Enum):
    """Categories an outfit plan may use."""

    TOP = "top"
    BOTTOM = "bottom"
    DRESS = "dress"
    OUTERWEAR = "outerwear"
    BLAZER = "blazer"
    SHOES = "shoes"
    BAG = "bag"
    JEWELRY = "jewelry"
    ACCESSORIES = "accessories"
    DENIM = "denim"


# Plural/singular and garment-name spellings the model tends to use
CATEGORY_SYNONYMS = {
    "tops": "top",
    "blouse": "top",
    "shirt": "top",
    "sweater": "top",
    "cardigan": "top",
    "tee": "top",
    "t-shirt": "top",
    "knitwear": "top",
    "bottoms": "bottom",
    "pants": "bottom",
    "trousers": "bottom",
    "skirt": "bottom",
    "skirts": "bottom",
    "shorts": "bottom",
    "dresses": "dress",
    "jacket": "outerwear",
    "coat": "outerwear",
    "shoe": "shoes",
    "footwear": "shoes",
    "boots": "shoes",
    "sneakers": "shoes",
    "heels": "shoes",
    "sandals": "shoes",
    "loafers": "shoes",
    "flats": "shoes",
    "bags": "bag",
    "handbag": "bag",
    "purse": "bag",
    "accessory": "accessories",
    "belt": "accessories",
    "scarf": "accessories",
    "hat": "accessories",
    "sunglasses": "accessories",
    "necklace": "jewelry",
    "earrings": "jewelry",
    "bracelet": "jewelry",
    "ring": "jewelry",
    "jeans": "denim",
    "jackets": "outerwear",
    "coats": "outerwear",
}

CATEGORY_VALUES = {c.value for c in ItemCategory}
FALLBACK_CATEGORY = ItemCategory.ACCESSORIES

# Categories that are never structural pieces
NON_MAIN_CATEGORIES = {
    ItemCategory.SHOES,
    ItemCategory.BAG,
    ItemCategory.JEWELRY,
    ItemCategory.ACCESSORIES,
}


class PlannedItem(BaseModel):
    """One planned slot of an outfit, with the query used to find it."""

    category: ItemCategory
    query: str = Field(..., min_length=1)
    reasoning: str = ""
    is_main: Optional[bool] = Field(
        None, validation_alias=AliasChoices("is_main", "isMain")
    )

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> Any:
        """
        Lowercase and map synonyms onto the fixed category set.

        Anything still unknown becomes an accessory rather than failing the
        whole plan; structural validation reports the outfit afterwards.
        """
        key = str(v).strip().lower() if v is not None else ""
        category = CATEGORY_SYNONYMS.get(key, key)
        if category not in CATEGORY_VALUES:
            logger.warning(
                f"Unknown planned item category {v!r}, using '{FALLBACK_CATEGORY.value}'"
            )
            return FALLBACK_CATEGORY.value
        return category

    @model_validator(mode="after")
    def default_is_main(self) -> "PlannedItem":
        """Derive is_main from the category when the model leaves it out."""
        if self.is_main is None:
            self.is_main = self.category not in NON_MAIN_CATEGORIES
        return self


class PlannedOutfit(BaseModel):
    """One outfit as planned by the reasoning service."""

    name: str = Field(..., min_length=1)
    occasion: str = ""
    stylist_blurb: Optional[str] = Field(
        None, validation_alias=AliasChoices("stylist_blurb", "stylistBlurb")
    )
    items: List[PlannedItem] = Field(default_factory=list)


class OutfitPlan(BaseModel):
    """Top-level object the reasoning service answers with."""

    outfits: List[PlannedOutfit] = Field(..., min_length=1)
