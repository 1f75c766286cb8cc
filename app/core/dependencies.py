"""
Request dependencies: caller identity and service instances
Reference: https://fastapi.tiangolo.com/tutorial/dependencies/
"""
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from app.services.catalog_search import CatalogSearchClient, get_search_client
from app.services.haul import HaulService
from app.services.llm import ReasoningClient, get_reasoning_client
from app.services.outfit_reader import OutfitReader
from app.services.outfit_writer import OutfitWriter
from app.services.planner import OutfitPlanner
from app.services.resolver import ProductResolver

logger = logging.getLogger(__name__)


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """
    Dependency returning the calling user's ID.

    Authentication happens upstream (gateway or frontend session); this
    service only trusts the forwarded `X-User-Id` header.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        logger.debug("Rejected request without X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


def get_outfit_planner(
    llm: ReasoningClient = Depends(get_reasoning_client),
) -> OutfitPlanner:
    return OutfitPlanner(llm)


def get_product_resolver(
    search_client: CatalogSearchClient = Depends(get_search_client),
) -> ProductResolver:
    return ProductResolver(search_client)


def get_haul_service(
    planner: OutfitPlanner = Depends(get_outfit_planner),
    resolver: ProductResolver = Depends(get_product_resolver),
) -> HaulService:
    return HaulService(planner, resolver)


@lru_cache()
def get_outfit_writer() -> OutfitWriter:
    """Stateless, so one instance serves every request."""
    return OutfitWriter()


@lru_cache()
def get_outfit_reader() -> OutfitReader:
    return OutfitReader()
