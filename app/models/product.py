"""
Product models for externally sourced catalog products.

Products are shared across outfits and sessions: identity is the
`external_id` assigned by the search service, never the surrogate key.

Reference: https://docs.sqlalchemy.org/en/21/orm/basic_relationships.html
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.outfit import OutfitItem


class Product(Base):
    """
    Product model representing one item from the product-search service.

    Attributes:
        id: Primary key (internal surrogate)
        external_id: Identity assigned by the search service (unique)
        name: Product name
        brand: Brand name (optional)
        image: URL to product image
        price: Price in major currency units (non-negative)
        currency: ISO currency code (default: USD)
        buy_link: External purchase URL
        created_at: Timestamp when product was first stored
        updated_at: Timestamp when product was last refreshed
    """

    __tablename__ = "products"

    __table_args__ = (
        # Sole deduplication key; upserts conflict on this constraint
        UniqueConstraint("external_id", name="uq_products_external_id"),
        Index("ix_products_brand", "brand"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    external_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identity assigned by the product-search service",
    )

    name: Mapped[str] = mapped_column(
        String(500), nullable=False, comment="Product name"
    )

    brand: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        comment="Brand name (optional for generic/unbranded items)",
    )

    image: Mapped[str] = mapped_column(
        Text, nullable=False, comment="URL to product image"
    )

    price: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False),
        nullable=False,
        default=0,
        comment="Price in major currency units. Example: 89.99",
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
        comment="ISO 4217 currency code",
    )

    buy_link: Mapped[str] = mapped_column(
        Text, nullable=False, comment="External purchase URL"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when product was first stored",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Timestamp when product was last refreshed",
    )

    def __repr__(self) -> str:
        """String representation of product"""
        return (
            f"<Product(id={self.id}, external_id='{self.external_id}', "
            f"name='{self.name}', price={self.price})>"
        )


class ProductVariant(Base):
    """
    Alternate product offered in place of an outfit item's main product.

    Attributes:
        id: Primary key
        outfit_item_id: Foreign key to the owning outfit item
        product_id: Foreign key to the alternate product (nullable if product is removed)
        position: Order of the variant within its item
    """

    __tablename__ = "product_variants"

    __table_args__ = (
        Index("ix_product_variants_outfit_item_id", "outfit_item_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    outfit_item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("outfit_items.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning outfit item",
    )

    product_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        comment="Alternate product",
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Order of the variant within its item",
    )

    outfit_item: Mapped["OutfitItem"] = relationship(
        "OutfitItem", back_populates="variants"
    )
    product: Mapped[Optional["Product"]] = relationship("Product")

    def __repr__(self) -> str:
        """String representation of product variant"""
        return (
            f"<ProductVariant(id={self.id}, outfit_item_id={self.outfit_item_id}, "
            f"product_id={self.product_id}, position={self.position})>"
        )
