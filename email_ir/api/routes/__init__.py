"""
Email IR API Routes

All API route modules.
"""

from fastapi import APIRouter

from .email_ir import router as email_ir_router
from .health import router as health_router


def get_api_router() -> APIRouter:
    """Create and return the main API router."""
    api_router = APIRouter(prefix="/api/v1")

    api_router.include_router(email_ir_router)
    api_router.include_router(health_router)

    return api_router


__all__ = [
    'get_api_router',
    'email_ir_router',
    'health_router',
]
