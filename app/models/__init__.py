"""
Database models
All SQLAlchemy models should be defined here or imported here
"""

# Import Base for models to inherit from
from app.core.database import Base
from app.models.outfit import Outfit, OutfitItem
from app.models.product import Product, ProductVariant
from app.models.styling_session import SessionOutfit, StylingSession

# Export all models for easy imports
__all__ = [
    "Base",
    "Outfit",
    "OutfitItem",
    "Product",
    "ProductVariant",
    "SessionOutfit",
    "StylingSession",
]
