"""
Health check endpoints

- /health (liveness): process is up, no dependency checks
- /health/ready (readiness): database reachable and upstream keys configured

Reference:
- https://kubernetes.io/docs/tasks/configure-pod-container/configure-liveness-readiness-startup-probes/
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["health"],
)


class HealthResponse(BaseModel):
    """Probe result"""
    status: str
    message: str
    services: Dict[str, bool] = Field(
        default_factory=dict,
        description="Upstream services with credentials configured",
    )


def configured_services() -> Dict[str, bool]:
    return {
        "reasoning": bool(settings.ANTHROPIC_API_KEY),
        "search": bool(settings.CHANNEL3_API_KEY),
    }


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check (liveness)",
    status_code=status.HTTP_200_OK,
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", message="Service is running")


@router.get(
    "/ready",
    response_model=HealthResponse,
    summary="Readiness check",
    description="Checks database connectivity and reports which upstream services are configured.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Database unavailable"},
    },
)
async def readiness_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """
    Readiness probe.

    **Raises:**
        HTTPException: 503 if the database is unavailable
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready - database unavailable",
        ) from e
    return HealthResponse(
        status="ready",
        message="Service is ready to serve traffic",
        services=configured_services(),
    )
