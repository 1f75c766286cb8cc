"""
Haul API routes: generate hauls and outfits, save them as styling
sessions, and read them back.
"""

import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.haul import (
    GenerateHaulRequest,
    GenerateHaulResponse,
    GenerateOutfitsRequest,
    GenerateOutfitsResponse,
    SaveOutfitsRequest,
    SaveOutfitsResponse,
    ShuffleRequest,
    ShuffleResponse,
)
from app.api.v1.schemas.outfit import HaulResponse
from app.core.database import get_db
from app.core.dependencies import (
    get_current_user_id,
    get_haul_service,
    get_outfit_reader,
    get_outfit_writer,
)
from app.core.exceptions import (
    GENERIC_PLANNING_MESSAGE,
    PlanningFailure,
    ProductPersistenceError,
    UpstreamUnavailable,
)
from app.services.haul import HaulService
from app.services.outfit_reader import OutfitReader
from app.services.outfit_writer import OutfitWriter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/hauls",
    tags=["hauls"],
    responses={
        500: {"description": "Internal server error"},
    },
)


def raise_generation_error(e: Exception, action: str) -> NoReturn:
    """
    Map a generation failure onto an HTTP error.

    Callers only ever see the generic retry message; the cause is logged.
    """
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, UpstreamUnavailable):
        logger.error(f"Upstream unavailable while {action}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=GENERIC_PLANNING_MESSAGE,
        ) from e
    if isinstance(e, PlanningFailure):
        logger.error(f"Planning failed while {action}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.user_message,
        ) from e
    logger.error(
        f"Unexpected error while {action}: {type(e).__name__}: {e}",
        exc_info=True,
    )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=GENERIC_PLANNING_MESSAGE,
    ) from e


@router.post(
    "/generate",
    response_model=GenerateHaulResponse,
    summary="Generate a haul",
    description="Plan search queries from a style profile, find products and explain each pick.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Haul generated successfully"},
        503: {"description": "Upstream service unavailable"},
    },
)
async def generate_haul(
    request: GenerateHaulRequest,
    haul_service: HaulService = Depends(get_haul_service),
) -> GenerateHaulResponse:
    """
    Generate a shopping haul for a quick-quiz style profile.

    **Refinement:** pass `refinement` to adjust the previous profile
    (`more-casual`, `different-colors`, `lower-prices`, `more-options`).
    """
    profile = request.to_profile()
    try:
        return await haul_service.generate_haul(profile, request.refinement)
    except Exception as e:
        raise_generation_error(e, "generating haul")


@router.post(
    "/outfits/generate",
    response_model=GenerateOutfitsResponse,
    summary="Generate complete outfits",
    description="Plan six outfits from the full quiz and resolve a product and variants for every item.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Outfits generated successfully"},
        503: {"description": "Upstream service unavailable"},
    },
)
async def generate_outfits(
    request: GenerateOutfitsRequest,
    haul_service: HaulService = Depends(get_haul_service),
) -> GenerateOutfitsResponse:
    try:
        return await haul_service.generate_outfits(request.quiz, request.gender)
    except Exception as e:
        raise_generation_error(e, "generating outfits")


@router.post(
    "/shuffle",
    response_model=ShuffleResponse,
    summary="Shuffle products",
    description="Random mix of products from broad category searches, leaving out kept ones.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Products shuffled"},
        503: {"description": "Upstream service unavailable"},
    },
)
async def shuffle_products(
    request: ShuffleRequest,
    haul_service: HaulService = Depends(get_haul_service),
) -> ShuffleResponse:
    try:
        return await haul_service.shuffle(request.kept_ids, request.count)
    except Exception as e:
        raise_generation_error(e, "shuffling products")


@router.post(
    "",
    response_model=SaveOutfitsResponse,
    summary="Save outfits as a haul",
    description="Persist outfit ideas as a new styling session owned by the caller.",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Haul saved"},
        400: {"description": "No outfits provided"},
        401: {"description": "Missing caller identity"},
    },
)
async def save_outfits(
    request: SaveOutfitsRequest,
    user_id: str = Depends(get_current_user_id),
    writer: OutfitWriter = Depends(get_outfit_writer),
    db: AsyncSession = Depends(get_db),
) -> SaveOutfitsResponse:
    """
    Save outfit ideas.

    The session row is the only hard guarantee: outfits or items that fail
    to store are skipped, so `outfit_ids` may be shorter than the request.
    """
    if not request.outfit_ideas:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No outfits provided",
        )

    try:
        persisted = await writer.persist_outfits(
            db, user_id, request.outfit_ideas, request.quiz
        )
    except ProductPersistenceError as e:
        logger.error(f"Error saving outfits for user {user_id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message,
        ) from e
    except Exception as e:
        logger.error(
            f"Unexpected error saving outfits for user {user_id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while saving outfits",
        ) from e

    return SaveOutfitsResponse(
        session_id=persisted.session_id,
        outfit_ids=persisted.outfit_ids,
    )


@router.get(
    "",
    response_model=List[HaulResponse],
    summary="List my hauls",
    description="All styling sessions of the caller, newest first, with their outfits in order.",
    status_code=status.HTTP_200_OK,
)
async def list_hauls(
    user_id: str = Depends(get_current_user_id),
    reader: OutfitReader = Depends(get_outfit_reader),
    db: AsyncSession = Depends(get_db),
) -> List[HaulResponse]:
    try:
        return await reader.load_sessions_for_user(db, user_id)
    except Exception as e:
        logger.error(
            f"Unexpected error listing hauls for user {user_id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving hauls",
        ) from e


@router.get(
    "/{session_id}",
    response_model=HaulResponse,
    summary="Get a haul",
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Haul not found"},
    },
)
async def get_haul(
    session_id: int = Path(..., description="Styling session ID"),
    user_id: str = Depends(get_current_user_id),
    reader: OutfitReader = Depends(get_outfit_reader),
    db: AsyncSession = Depends(get_db),
) -> HaulResponse:
    haul = await reader.get_session_for_user(db, user_id, session_id)
    if haul is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Haul with ID {session_id} not found",
        )
    return haul


@router.delete(
    "/{session_id}",
    summary="Delete a haul",
    description="Delete a styling session and its outfits. Shared products are kept.",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Haul deleted"},
        404: {"description": "Haul not found"},
    },
)
async def delete_haul(
    session_id: int = Path(..., description="Styling session ID"),
    user_id: str = Depends(get_current_user_id),
    reader: OutfitReader = Depends(get_outfit_reader),
    db: AsyncSession = Depends(get_db),
) -> None:
    deleted = await reader.delete_session(db, user_id, session_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Haul with ID {session_id} not found",
        )
