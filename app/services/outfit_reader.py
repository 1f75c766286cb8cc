"""
Denormalization reader: rebuilds nested hauls and outfits from the
relational schema.

Every read path goes through `hydrate_outfit`, so items and variants are
ordered and filtered the same way for owners and anonymous share links.

Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/relationships.html#selectin-eager-loading
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.v1.schemas.outfit import (
    HaulResponse,
    OutfitItemResponse,
    OutfitResponse,
    PriceRange,
    ProductPayload,
)
from app.models.outfit import Outfit, OutfitItem
from app.models.product import Product, ProductVariant
from app.models.styling_session import SessionOutfit, StylingSession

logger = logging.getLogger(__name__)

# Outfit -> items -> product, and items -> variants -> product, in one round trip per level
OUTFIT_LOAD_OPTIONS = (
    selectinload(Outfit.items).selectinload(OutfitItem.product),
    selectinload(Outfit.items)
    .selectinload(OutfitItem.variants)
    .selectinload(ProductVariant.product),
)


def first_or_none(related: Any) -> Any:
    """
    Normalize a related record to a scalar.

    Some join shapes come back as a one-element collection instead of the
    object itself; both are accepted here.
    """
    if isinstance(related, (list, tuple)):
        return related[0] if related else None
    return related


def product_payload(product: Optional[Product]) -> Optional[ProductPayload]:
    product = first_or_none(product)
    if product is None:
        return None
    return ProductPayload(
        id=product.external_id or str(product.id),
        name=product.name,
        brand=product.brand,
        image=product.image or "/placeholder.png",
        price=product.price or 0,
        currency=product.currency or "USD",
        buy_link=product.buy_link or "#",
    )


def hydrate_outfit(outfit: Outfit) -> OutfitResponse:
    """
    Convert an eagerly loaded Outfit into its nested response shape.

    Items and variants are sorted by position. Items whose main product is
    gone and variants without a product are dropped.
    """
    items: List[OutfitItemResponse] = []
    for item in sorted(outfit.items, key=lambda i: i.position):
        product = product_payload(item.product)
        if product is None:
            logger.warning(f"Skipping outfit item {item.id}: main product is missing")
            continue
        variants = [
            payload
            for payload in (
                product_payload(variant.product)
                for variant in sorted(item.variants, key=lambda v: v.position)
            )
            if payload is not None
        ]
        items.append(
            OutfitItemResponse(
                category=item.category,
                reasoning=item.reasoning,
                is_main=item.is_main,
                product=product,
                variants=variants,
            )
        )

    price_range = None
    if outfit.price_range_min is not None and outfit.price_range_max is not None:
        price_range = PriceRange(min=outfit.price_range_min, max=outfit.price_range_max)

    return OutfitResponse(
        id=outfit.id,
        name=outfit.name,
        occasion=outfit.occasion,
        stylist_blurb=outfit.stylist_blurb,
        total_price=outfit.total_price,
        price_range=price_range,
        share_token=outfit.share_token,
        created_at=outfit.created_at,
        items=items,
    )


def build_haul(session: StylingSession, outfits: List[OutfitResponse]) -> HaulResponse:
    # Flat product list kept for consumers of the older haul shape
    products = [item.product for outfit in outfits for item in outfit.items]
    return HaulResponse(
        id=session.id,
        haul_id=session.id,
        created_at=session.created_at,
        quiz_data=session.quiz_data,
        outfits=outfits,
        outfit_ideas=outfits,
        products=products,
        outfit_count=len(outfits),
    )


class OutfitReader:
    """Read and delete operations over stored sessions and outfits."""

    async def _load_outfits(self, db: AsyncSession, outfit_ids) -> Dict[int, OutfitResponse]:
        if not outfit_ids:
            return {}
        result = await db.execute(
            select(Outfit)
            .where(Outfit.id.in_(outfit_ids))
            .options(*OUTFIT_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return {outfit.id: hydrate_outfit(outfit) for outfit in result.scalars().all()}

    async def _assemble_hauls(
        self, db: AsyncSession, sessions: List[StylingSession]
    ) -> List[HaulResponse]:
        if not sessions:
            return []

        session_ids = [s.id for s in sessions]
        links_result = await db.execute(
            select(SessionOutfit)
            .where(SessionOutfit.session_id.in_(session_ids))
            .order_by(SessionOutfit.session_id, SessionOutfit.position)
        )
        links_by_session: Dict[int, List[SessionOutfit]] = defaultdict(list)
        for link in links_result.scalars().all():
            links_by_session[link.session_id].append(link)

        outfit_ids = {link.outfit_id for links in links_by_session.values() for link in links}
        outfits_by_id = await self._load_outfits(db, outfit_ids)

        hauls = []
        for session in sessions:
            links = sorted(links_by_session.get(session.id, []), key=lambda l: l.position)
            outfits = [
                outfits_by_id[link.outfit_id]
                for link in links
                if link.outfit_id in outfits_by_id
            ]
            hauls.append(build_haul(session, outfits))
        return hauls

    async def load_sessions_for_user(
        self, db: AsyncSession, user_id: str
    ) -> List[HaulResponse]:
        """
        All hauls of a user, newest first, each with its outfits in link order.

        Uses three queries regardless of the number of sessions: sessions,
        links, then all referenced outfits with their items eagerly loaded.
        """
        result = await db.execute(
            select(StylingSession)
            .where(StylingSession.user_id == user_id)
            .order_by(StylingSession.created_at.desc(), StylingSession.id.desc())
            .execution_options(populate_existing=True)
        )
        sessions = list(result.scalars().all())
        hauls = await self._assemble_hauls(db, sessions)
        logger.debug(f"Loaded {len(hauls)} hauls for user: {user_id}")
        return hauls

    async def get_session_for_user(
        self, db: AsyncSession, user_id: str, session_id: int
    ) -> Optional[HaulResponse]:
        """Single haul owned by the user, or None."""
        result = await db.execute(
            select(StylingSession)
            .where(StylingSession.id == session_id, StylingSession.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        session = result.scalar_one_or_none()
        if session is None:
            return None
        hauls = await self._assemble_hauls(db, [session])
        return hauls[0]

    async def load_outfit_by_share_token(
        self, db: AsyncSession, share_token: str
    ) -> Optional[OutfitResponse]:
        """
        Public lookup by share token. No user filter: the token is the capability.
        """
        result = await db.execute(
            select(Outfit)
            .where(Outfit.share_token == share_token)
            .options(*OUTFIT_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        outfit = result.scalar_one_or_none()
        if outfit is None:
            return None
        return hydrate_outfit(outfit)

    async def load_outfits_for_user(
        self, db: AsyncSession, user_id: str
    ) -> List[OutfitResponse]:
        """Every outfit the user owns, newest first."""
        result = await db.execute(
            select(Outfit)
            .where(Outfit.user_id == user_id)
            .order_by(Outfit.created_at.desc(), Outfit.id.desc())
            .options(*OUTFIT_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return [hydrate_outfit(outfit) for outfit in result.scalars().all()]

    async def delete_session(self, db: AsyncSession, user_id: str, session_id: int) -> bool:
        """
        Delete a haul and the outfits no other session still links to.

        Products are shared and never deleted.

        Returns:
            True if deleted, False if not found
        """
        result = await db.execute(
            select(StylingSession.id).where(
                StylingSession.id == session_id, StylingSession.user_id == user_id
            )
        )
        if result.scalar_one_or_none() is None:
            logger.debug(f"Session {session_id} not found for user: {user_id}")
            return False

        links_result = await db.execute(
            select(SessionOutfit.outfit_id).where(SessionOutfit.session_id == session_id)
        )
        outfit_ids = set(links_result.scalars().all())

        await db.execute(delete(SessionOutfit).where(SessionOutfit.session_id == session_id))
        await db.execute(delete(StylingSession).where(StylingSession.id == session_id))

        orphan_ids: List[int] = []
        if outfit_ids:
            still_linked = await db.execute(
                select(SessionOutfit.outfit_id).where(SessionOutfit.outfit_id.in_(outfit_ids))
            )
            orphan_ids = sorted(outfit_ids - set(still_linked.scalars().all()))

        if orphan_ids:
            item_ids = select(OutfitItem.id).where(OutfitItem.outfit_id.in_(orphan_ids))
            await db.execute(delete(ProductVariant).where(ProductVariant.outfit_item_id.in_(item_ids)))
            await db.execute(delete(OutfitItem).where(OutfitItem.outfit_id.in_(orphan_ids)))
            await db.execute(delete(Outfit).where(Outfit.id.in_(orphan_ids)))
        await db.flush()

        logger.info(
            f"Deleted session {session_id} for user: {user_id} "
            f"({len(orphan_ids)} outfits removed)"
        )
        return True
