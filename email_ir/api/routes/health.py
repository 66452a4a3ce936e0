"""
Email IR Health API Routes

Health check and status endpoints.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from email_ir.api.dependencies import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(settings=Depends(get_settings)):
    """
    Basic health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": "email-ir-api",
        "version": settings.app_version,
    }


@router.get("/ready")
async def readiness_check(settings=Depends(get_settings)):
    """
    Readiness check - verifies the pipeline dependencies.

    Returns:
        Readiness status with component checks
    """
    from email_ir.api import dependencies
    from email_ir.services.ai.client import get_inference_client
    from email_ir.services.storage import get_report_store

    checks = {}
    all_ready = True

    client = get_inference_client()
    if client and client.is_configured():
        checks["inference"] = {
            "status": "ready",
            "providers": client.get_configured_providers(),
            "preferred": client.preferred_provider,
        }
    else:
        checks["inference"] = {"status": "not_configured"}
        all_ready = False

    store = get_report_store()
    if store is not None:
        checks["storage"] = {"status": "ready", "type": settings.storage_type, "reports": store.count()}
    else:
        checks["storage"] = {"status": "not_initialized"}
        all_ready = False

    checks["pipeline"] = {"status": "ready" if dependencies._pipeline is not None else "not_initialized"}
    if dependencies._pipeline is None:
        all_ready = False

    return {
        "ready": all_ready,
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks,
    }
