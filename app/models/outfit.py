"""
Outfit models - a cohesive look made of ordered items.

Reference: https://docs.sqlalchemy.org/en/21/orm/basic_relationships.html
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.product import Product, ProductVariant
    from app.models.styling_session import SessionOutfit


class Outfit(Base):
    """
    Outfit model representing one styled look.

    Attributes:
        id: Primary key
        user_id: Owner user ID
        name: Outfit name (e.g., 'Refined Casual')
        occasion: Occasion the outfit is meant for
        stylist_blurb: 2-3 sentence rationale
        total_price: Sum of main item prices
        price_range_min: Lowest main/variant price
        price_range_max: Highest main/variant price
        share_token: Unguessable token granting anonymous read access
        created_at: Timestamp when outfit was created
    """

    __tablename__ = "outfits"

    __table_args__ = (
        Index("ix_outfits_user_id", "user_id"),
        Index("ix_outfits_share_token", "share_token", unique=True),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String,
        nullable=False,
        comment="Owner user ID",
    )

    name: Mapped[str] = mapped_column(
        String(200), nullable=False, comment="Outfit name"
    )

    occasion: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True, comment="Occasion (e.g., 'Office', 'Weekend brunch')"
    )

    stylist_blurb: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Stylist rationale for the look"
    )

    total_price: Mapped[Optional[float]] = mapped_column(
        Numeric(12, 2, asdecimal=False),
        nullable=True,
        comment="Sum of main item prices",
    )

    price_range_min: Mapped[Optional[float]] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=True
    )

    price_range_max: Mapped[Optional[float]] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=True
    )

    share_token: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Opaque capability token for public sharing",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when outfit was created",
    )

    # One-to-many: items in display order
    items: Mapped[list["OutfitItem"]] = relationship(
        "OutfitItem",
        back_populates="outfit",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OutfitItem.position",
    )

    session_links: Mapped[list["SessionOutfit"]] = relationship(
        "SessionOutfit",
        back_populates="outfit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation of outfit"""
        return (
            f"<Outfit(id={self.id}, name='{self.name}', "
            f"user_id='{self.user_id}', total_price={self.total_price})>"
        )


class OutfitItem(Base):
    """
    One slot of an outfit, pointing at its main product.

    Attributes:
        id: Primary key
        outfit_id: Foreign key to the owning outfit
        product_id: Foreign key to the main product (null if product was removed)
        category: Item category (top, bottom, shoes, ...)
        reasoning: Why this item is in the outfit
        is_main: True for the 1-2 structural pieces
        position: Order of the item within the outfit
    """

    __tablename__ = "outfit_items"

    __table_args__ = (
        Index("ix_outfit_items_outfit_id", "outfit_id"),
        Index("ix_outfit_items_product_id", "product_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    outfit_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("outfits.id", ondelete="CASCADE"),
        nullable=False,
    )

    product_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        comment="Main product (shared, never owned by the item)",
    )

    category: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="Item category"
    )

    reasoning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_main: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="True for the structural pieces of the outfit",
    )

    position: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Order within the outfit"
    )

    outfit: Mapped["Outfit"] = relationship("Outfit", back_populates="items")
    product: Mapped[Optional["Product"]] = relationship("Product")
    variants: Mapped[list["ProductVariant"]] = relationship(
        "ProductVariant",
        back_populates="outfit_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductVariant.position",
    )

    def __repr__(self) -> str:
        """String representation of outfit item"""
        return (
            f"<OutfitItem(id={self.id}, outfit_id={self.outfit_id}, "
            f"category='{self.category}', position={self.position})>"
        )
