"""
Schemas for style questionnaire input.

Reference: https://fastapi.tiangolo.com/tutorial/body/
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator


def _split_brands(v: Union[str, List[str], None]) -> List[str]:
    """Accept brands as a list or a comma-separated string."""
    if v is None:
        return []
    if isinstance(v, str):
        return [brand.strip() for brand in v.split(",") if brand.strip()]
    return [str(brand).strip() for brand in v if str(brand).strip()]


class StyleProfile(BaseModel):
    """
    Style profile collected by the quick quiz.

    Immutable input to planning; only ever persisted as an opaque blob.
    """

    gender: str = Field(default="womens", description="Gender the haul is for")
    body_type: str = Field(..., min_length=1, description="Body type (e.g., 'hourglass')")
    style_vibe: str = Field(..., min_length=1, description="Style vibe (e.g., 'minimalist')")
    budget: str = Field(default="$$", description="Budget tier, '$' (cheapest) to '$$$$$'")
    shopping_for: str = Field(default="everyday", description="What the user is shopping for")
    color_preferences: str = Field(default="mixed", description="mixed, neutral, bold or pastel")
    favorite_brands: List[str] = Field(
        default_factory=list,
        description="Preferred brands (list or comma-separated string)",
    )

    @field_validator("favorite_brands", mode="before")
    @classmethod
    def validate_favorite_brands(cls, v: Union[str, List[str], None]) -> List[str]:
        """Normalize favorite brands into a clean list."""
        return _split_brands(v)

    @property
    def brands_text(self) -> str:
        """Brands formatted for prompts."""
        return ", ".join(self.favorite_brands) if self.favorite_brands else "None specified"


class QuizData(BaseModel):
    """
    Full style quiz used to plan complete outfits.
    """

    styles: List[str] = Field(..., min_length=1, description="Preferred styles")
    occasions: List[str] = Field(..., min_length=1, description="Occasions to dress for")
    body_type: str = Field(..., min_length=1, description="Body type")
    budget_range: str = Field(..., min_length=1, description="Budget tier, '$' to '$$$$$'")
    fit_preference: Optional[str] = Field(None, description="Fit preference (e.g., 'relaxed')")
    avoidances: List[str] = Field(default_factory=list, description="Things to avoid")
    must_haves: List[str] = Field(default_factory=list, description="Must-have pieces")
    color_preferences: str = Field(default="mixed", description="Color preference")
    favorite_brands: List[str] = Field(default_factory=list, description="Preferred brands")
    gender: Optional[str] = Field(None, description="female, male or unisex")

    @field_validator("favorite_brands", mode="before")
    @classmethod
    def validate_favorite_brands(cls, v: Union[str, List[str], None]) -> List[str]:
        """Normalize favorite brands into a clean list."""
        return _split_brands(v)
