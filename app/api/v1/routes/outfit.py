"""
Outfit API routes: the caller's outfits and public share links.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.outfit import OutfitResponse
from app.core.database import get_db
from app.core.dependencies import get_current_user_id, get_outfit_reader
from app.services.outfit_reader import OutfitReader

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/outfits",
    tags=["outfits"],
    responses={
        500: {"description": "Internal server error"},
    },
)


@router.get(
    "",
    response_model=List[OutfitResponse],
    summary="List my outfits",
    description="Every outfit owned by the caller, newest first.",
    status_code=status.HTTP_200_OK,
    responses={
        401: {"description": "Missing caller identity"},
    },
)
async def list_outfits(
    user_id: str = Depends(get_current_user_id),
    reader: OutfitReader = Depends(get_outfit_reader),
    db: AsyncSession = Depends(get_db),
) -> List[OutfitResponse]:
    try:
        outfits = await reader.load_outfits_for_user(db, user_id)
    except Exception as e:
        logger.error(
            f"Unexpected error listing outfits for user {user_id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving outfits",
        ) from e
    logger.info(f"Retrieved {len(outfits)} outfits for user: {user_id}")
    return outfits


@router.get(
    "/shared/{share_token}",
    response_model=OutfitResponse,
    summary="Get a shared outfit",
    description="Anonymous lookup of an outfit by its share token.",
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Outfit not found"},
    },
)
async def get_shared_outfit(
    share_token: str = Path(..., min_length=1, description="Outfit share token"),
    reader: OutfitReader = Depends(get_outfit_reader),
    db: AsyncSession = Depends(get_db),
) -> OutfitResponse:
    """
    Public outfit view.

    **No authentication:** anyone holding the token can read the outfit.
    """
    outfit = await reader.load_outfit_by_share_token(db, share_token)
    if outfit is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Outfit not found",
        )
    return outfit
