"""
Pydantic schemas for API request/response models
"""

from app.api.v1.schemas.outfit import (
    HaulResponse,
    OutfitIdea,
    OutfitItemIdea,
    OutfitResponse,
    ProductPayload,
)
from app.api.v1.schemas.style import QuizData, StyleProfile

__all__ = [
    "HaulResponse",
    "OutfitIdea",
    "OutfitItemIdea",
    "OutfitResponse",
    "ProductPayload",
    "QuizData",
    "StyleProfile",
]
