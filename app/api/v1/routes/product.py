"""
Product API routes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.schemas.haul import EnrichProductRequest, EnrichProductResponse
from app.services.catalog_search import CatalogSearchClient, get_search_client

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["products"],
)


@router.post(
    "/enrich",
    response_model=EnrichProductResponse,
    summary="Enrich a product",
    description="Fetch description, images, materials and key features for a product page.",
    status_code=status.HTTP_200_OK,
    responses={
        502: {"description": "Product details unavailable"},
    },
)
async def enrich_product(
    request: EnrichProductRequest,
    search_client: CatalogSearchClient = Depends(get_search_client),
) -> EnrichProductResponse:
    details = await search_client.enrich(request.url)
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not fetch product details",
        )
    return EnrichProductResponse(**details)
