"""
API v1 router aggregation
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
from fastapi import APIRouter

from app.api.v1.routes import haul, health, outfit, product
from app.core.config import settings


# All v1 routes are prefixed with /api/v1
api_router = APIRouter(prefix=settings.API_V1_PREFIX)

api_router.include_router(haul.router)
api_router.include_router(outfit.router)
api_router.include_router(product.router)
api_router.include_router(health.router)
