"""
Schemas for outfit ideas (write shape) and reconstructed outfits/hauls (read shape).

Reference: https://fastapi.tiangolo.com/tutorial/body/
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Column widths of the products table
MAX_EXTERNAL_ID_LENGTH = 255
MAX_NAME_LENGTH = 500
MAX_BRAND_LENGTH = 200
DEFAULT_CURRENCY = "USD"


class ProductPayload(BaseModel):
    """
    Product as returned by the search service.

    `id` is the search service's external identity, not a database key.
    """

    id: str = Field(
        ..., min_length=1, max_length=MAX_EXTERNAL_ID_LENGTH, description="External product ID"
    )
    name: str = Field(..., min_length=1, description="Product name")
    brand: Optional[str] = Field(None, description="Brand name")
    image: str = Field(default="/placeholder.png", description="Product image URL")
    price: float = Field(default=0, ge=0, description="Price in major currency units")
    currency: str = Field(default=DEFAULT_CURRENCY, description="ISO currency code")
    buy_link: str = Field(default="#", description="External purchase URL")
    category: Optional[str] = Field(None, description="Inferred apparel category")
    reason: Optional[str] = Field(None, description="Why this product fits the profile")

    # Matching hints from the search service; never stored nor returned
    description: Optional[str] = Field(None, exclude=True)
    materials: Optional[List[str]] = Field(None, exclude=True)
    key_features: Optional[List[str]] = Field(None, exclude=True)

    @field_validator("name", mode="before")
    @classmethod
    def truncate_name(cls, v: Any) -> Any:
        """Clip upstream titles to the stored width."""
        if isinstance(v, str):
            return v.strip()[:MAX_NAME_LENGTH]
        return v

    @field_validator("brand", mode="before")
    @classmethod
    def truncate_brand(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()[:MAX_BRAND_LENGTH] or None
        return v

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: Any) -> str:
        """Uppercase 3-letter codes; anything else falls back to USD."""
        code = str(v or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            return DEFAULT_CURRENCY
        return code


class ResolvedProduct(ProductPayload):
    """Search result tagged with the query that found it."""

    query: str = Field(..., description="Search query that produced this product")


class PriceRange(BaseModel):
    """Lowest and highest price across an outfit's main and variant products."""

    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "PriceRange":
        """Ensure min does not exceed max."""
        if self.min > self.max:
            raise ValueError("Price range min must not exceed max")
        return self


class OutfitItemIdea(BaseModel):
    """One item of an outfit idea: main product plus alternates."""

    category: str = Field(..., min_length=1, max_length=50)
    reasoning: Optional[str] = None
    is_main: bool = False
    product: ProductPayload
    variants: List[ProductPayload] = Field(default_factory=list)


class OutfitIdea(BaseModel):
    """
    Flat, nested outfit shape produced by generation and accepted by save.
    """

    name: str = Field(..., min_length=1, max_length=200)
    occasion: Optional[str] = None
    stylist_blurb: Optional[str] = None
    items: List[OutfitItemIdea] = Field(default_factory=list)
    total_price: float = Field(default=0, ge=0)
    price_range: Optional[PriceRange] = None


class OutfitItemResponse(BaseModel):
    """Reconstructed outfit item; items without a product are never returned."""

    category: str
    reasoning: Optional[str] = None
    is_main: bool = False
    product: ProductPayload
    variants: List[ProductPayload] = Field(default_factory=list)


class OutfitResponse(BaseModel):
    """Outfit reconstructed from the relational schema."""

    id: int
    name: str
    occasion: Optional[str] = None
    stylist_blurb: Optional[str] = None
    total_price: Optional[float] = None
    price_range: Optional[PriceRange] = None
    share_token: Optional[str] = None
    created_at: datetime
    items: List[OutfitItemResponse] = Field(default_factory=list)


class HaulResponse(BaseModel):
    """
    Styling session with its outfits in link order.

    `haul_id`, `outfit_ideas` and `products` mirror `id` and `outfits` for
    consumers of the older flat haul shape.
    """

    id: int
    haul_id: int
    created_at: datetime
    quiz_data: Optional[Any] = None
    outfits: List[OutfitResponse] = Field(default_factory=list)
    outfit_ideas: List[OutfitResponse] = Field(default_factory=list)
    products: List[ProductPayload] = Field(default_factory=list)
    outfit_count: int = 0
