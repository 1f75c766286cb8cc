"""
Schemas for haul generation and saving.

Reference: https://fastapi.tiangolo.com/tutorial/body/
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from app.api.v1.schemas.outfit import OutfitIdea, ProductPayload, ResolvedProduct
from app.api.v1.schemas.style import QuizData, StyleProfile
from app.services.refinement import Refinement


class GenerateHaulRequest(StyleProfile):
    """Quick-quiz profile plus an optional refinement of a previous haul."""

    refinement: Optional[Refinement] = Field(
        None,
        description="more-casual, different-colors, lower-prices or more-options",
    )

    def to_profile(self) -> StyleProfile:
        return StyleProfile(**self.model_dump(exclude={"refinement"}))


class GenerateHaulResponse(BaseModel):
    """Products found for a quick-quiz profile."""

    haul_id: str
    products: List[ResolvedProduct]
    queries: List[str]
    profile: StyleProfile = Field(
        ..., description="Profile actually planned with (after refinement)"
    )


class GenerateOutfitsRequest(BaseModel):
    """Full quiz used to generate complete outfits."""

    quiz: QuizData
    gender: Optional[str] = Field(None, description="Overrides quiz.gender when set")


class GenerateOutfitsResponse(BaseModel):
    """Complete outfit ideas with resolved products."""

    haul_id: str
    outfit_ideas: List[OutfitIdea]
    products: List[ProductPayload]
    quiz: QuizData


class ShuffleRequest(BaseModel):
    """Random product mix; products the user already kept are excluded."""

    kept_ids: List[str] = Field(default_factory=list, description="External ids to leave out")
    count: int = Field(12, ge=1, le=40, description="Maximum number of products")


class ShuffleResponse(BaseModel):
    products: List[ProductPayload]


class SaveOutfitsRequest(BaseModel):
    """Outfit ideas to persist as a new styling session."""

    outfit_ideas: List[OutfitIdea] = Field(default_factory=list)
    quiz: Optional[Any] = Field(None, description="Opaque quiz data stored with the session")


class SaveOutfitsResponse(BaseModel):
    """Identifiers of the stored session and outfits."""

    success: bool = True
    session_id: int
    outfit_ids: List[int]


class EnrichProductRequest(BaseModel):
    """Product page URL to enrich."""

    url: str = Field(..., min_length=1)


class EnrichProductResponse(BaseModel):
    """Extra product details from the search service."""

    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    materials: Optional[List[str]] = None
    key_features: Optional[List[str]] = None
