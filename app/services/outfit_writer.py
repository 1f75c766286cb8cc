"""
Normalization writer: stores outfit ideas as a styling session with
outfits, items, products and variants.

The write sequence is best effort. Only the session row is a hard
guarantee; individual outfits, items and variants that fail are logged and
skipped. Each risky row runs in its own SAVEPOINT so a failure does not
poison the surrounding transaction.

Reference: https://docs.sqlalchemy.org/en/20/orm/session_transaction.html#using-savepoint
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, List, NamedTuple, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.outfit import OutfitIdea, OutfitItemIdea, ProductPayload
from app.core.exceptions import ProductPersistenceError
from app.models.outfit import Outfit, OutfitItem
from app.models.product import Product, ProductVariant
from app.models.styling_session import SessionOutfit, StylingSession

logger = logging.getLogger(__name__)

# Dialects with native INSERT ... ON CONFLICT support
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PersistedHaul(NamedTuple):
    """Identifiers of a stored session and its outfits, in order."""

    session_id: int
    outfit_ids: List[int]


def new_share_token() -> str:
    """128-bit random capability token for public outfit links."""
    return secrets.token_hex(16)


class OutfitWriter:
    """Writes outfit ideas into the normalized schema."""

    async def persist_outfits(
        self,
        db: AsyncSession,
        user_id: str,
        outfit_ideas: Sequence[OutfitIdea],
        quiz_data: Optional[Any] = None,
    ) -> PersistedHaul:
        """
        Store outfit ideas as a new styling session.

        Args:
            db: Database session
            user_id: Owner of the session and outfits
            outfit_ideas: Outfits in display order
            quiz_data: Opaque quiz blob kept with the session

        Returns:
            Session id and ids of the outfits that were stored

        Raises:
            ProductPersistenceError: If a main product can be neither upserted nor found
            SQLAlchemyError: If the session row itself cannot be created
        """
        # Server defaults are not loaded after flush
        session = StylingSession(
            user_id=user_id, quiz_data=quiz_data, created_at=datetime.now(timezone.utc)
        )
        db.add(session)
        await db.flush()
        logger.info(f"Created styling session {session.id} for user: {user_id}")

        outfit_ids: List[int] = []
        for outfit_index, idea in enumerate(outfit_ideas):
            outfit_id = await self._persist_outfit(db, user_id, session.id, outfit_index, idea)
            if outfit_id is not None:
                outfit_ids.append(outfit_id)

        if len(outfit_ids) != len(outfit_ideas):
            logger.warning(
                f"Session {session.id}: stored {len(outfit_ids)} of {len(outfit_ideas)} outfits"
            )
        return PersistedHaul(session_id=session.id, outfit_ids=outfit_ids)

    async def _persist_outfit(
        self,
        db: AsyncSession,
        user_id: str,
        session_id: int,
        outfit_index: int,
        idea: OutfitIdea,
    ) -> Optional[int]:
        # Products first: main products are mandatory, variants best effort
        main_product_ids: List[int] = []
        variant_product_ids: List[List[int]] = []
        for item in idea.items:
            main_product_ids.append(await self.resolve_product_id(db, item.product))
            variant_product_ids.append(await self._resolve_variant_ids(db, item))

        try:
            async with db.begin_nested():
                outfit = await self._insert_outfit(db, user_id, idea)
        except Exception as e:
            logger.error(
                f"Failed to create outfit '{idea.name}' in session {session_id}: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            return None

        for item_index, item in enumerate(idea.items):
            try:
                async with db.begin_nested():
                    outfit_item = await self._insert_item(
                        db, outfit.id, main_product_ids[item_index], item_index, item
                    )
            except Exception as e:
                logger.error(
                    f"Error creating outfit item {item_index} of outfit {outfit.id}: "
                    f"{type(e).__name__}: {e}"
                )
                continue

            # Variants only after their item exists; positions count surviving variants
            for variant_index, variant_product_id in enumerate(variant_product_ids[item_index]):
                try:
                    async with db.begin_nested():
                        await self._insert_variant(
                            db, outfit_item.id, variant_product_id, variant_index
                        )
                except Exception as e:
                    logger.error(
                        f"Error creating variant {variant_index} of outfit item {outfit_item.id}: "
                        f"{type(e).__name__}: {e}"
                    )

        try:
            async with db.begin_nested():
                await self._link_outfit(db, session_id, outfit.id, outfit_index)
        except Exception as e:
            logger.error(
                f"Error linking outfit {outfit.id} to session {session_id}: {type(e).__name__}: {e}"
            )

        logger.info(
            f"Stored outfit '{outfit.name}' (ID: {outfit.id}) at position {outfit_index} "
            f"of session {session_id}"
        )
        return outfit.id

    async def resolve_product_id(self, db: AsyncSession, product: ProductPayload) -> int:
        """
        Upsert a product and return its row id.

        Falls back to a lookup by external id if the upsert fails.

        Raises:
            ProductPersistenceError: If neither works
        """
        try:
            async with db.begin_nested():
                return await self.upsert_product(db, product)
        except Exception as e:
            logger.error(f"Error upserting product {product.id}: {type(e).__name__}: {e}")

        try:
            existing_id = await self.find_product_id(db, product.id)
        except Exception as e:
            logger.error(f"Error looking up product {product.id}: {type(e).__name__}: {e}")
            existing_id = None

        if existing_id is None:
            raise ProductPersistenceError(product.id)
        return existing_id

    async def _resolve_variant_ids(self, db: AsyncSession, item: OutfitItemIdea) -> List[int]:
        """
        Variant products are best effort: a failing one is dropped.

        Later variants move up, so stored positions stay contiguous.
        """
        variant_ids: List[int] = []
        for variant in item.variants:
            try:
                variant_ids.append(await self.resolve_product_id(db, variant))
            except ProductPersistenceError as e:
                logger.warning(f"Dropping variant: {e}")
        return variant_ids

    async def upsert_product(self, db: AsyncSession, product: ProductPayload) -> int:
        """
        INSERT ... ON CONFLICT (external_id) DO UPDATE, returning the row id.

        Uses the store's unique constraint as the only concurrency guard, so
        concurrent saves of the same external id converge on one row.
        """
        dialect = db.get_bind().dialect.name
        insert = UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Product upsert is not supported on {dialect}")

        stmt = insert(Product).values(
            external_id=product.id,
            name=product.name,
            brand=product.brand or None,
            image=product.image,
            price=product.price,
            currency=product.currency or "USD",
            buy_link=product.buy_link,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Product.external_id],
            set_={
                "name": stmt.excluded.name,
                "brand": stmt.excluded.brand,
                "image": stmt.excluded.image,
                "price": stmt.excluded.price,
                "currency": stmt.excluded.currency,
                "buy_link": stmt.excluded.buy_link,
                "updated_at": func.now(),
            },
        ).returning(Product.id)

        result = await db.execute(stmt)
        return result.scalar_one()

    async def find_product_id(self, db: AsyncSession, external_id: str) -> Optional[int]:
        result = await db.execute(
            select(Product.id).where(Product.external_id == external_id)
        )
        return result.scalar_one_or_none()

    async def _insert_outfit(self, db: AsyncSession, user_id: str, idea: OutfitIdea) -> Outfit:
        outfit = Outfit(
            user_id=user_id,
            name=idea.name,
            occasion=idea.occasion or None,
            stylist_blurb=idea.stylist_blurb or None,
            total_price=idea.total_price,
            price_range_min=idea.price_range.min if idea.price_range else None,
            price_range_max=idea.price_range.max if idea.price_range else None,
            share_token=new_share_token(),
            created_at=datetime.now(timezone.utc),
        )
        db.add(outfit)
        await db.flush()
        return outfit

    async def _insert_item(
        self,
        db: AsyncSession,
        outfit_id: int,
        product_id: int,
        position: int,
        item: OutfitItemIdea,
    ) -> OutfitItem:
        outfit_item = OutfitItem(
            outfit_id=outfit_id,
            product_id=product_id,
            category=item.category,
            reasoning=item.reasoning or None,
            is_main=item.is_main,
            position=position,
        )
        db.add(outfit_item)
        await db.flush()
        return outfit_item

    async def _insert_variant(
        self, db: AsyncSession, outfit_item_id: int, product_id: int, position: int
    ) -> ProductVariant:
        variant = ProductVariant(
            outfit_item_id=outfit_item_id,
            product_id=product_id,
            position=position,
        )
        db.add(variant)
        await db.flush()
        return variant

    async def _link_outfit(
        self, db: AsyncSession, session_id: int, outfit_id: int, position: int
    ) -> SessionOutfit:
        link = SessionOutfit(session_id=session_id, outfit_id=outfit_id, position=position)
        db.add(link)
        await db.flush()
        return link
