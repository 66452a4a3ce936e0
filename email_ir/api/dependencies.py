"""
Email IR API Dependencies

FastAPI dependency injection for settings, the report store and the
pipeline.
"""

import logging
from typing import Optional

from fastapi import HTTPException

from email_ir.config import Settings, get_settings as load_settings
from email_ir.services.analysis.orchestrator import EmailIRPipeline, create_pipeline
from email_ir.services.ai.client import get_inference_client, init_inference_client
from email_ir.services.storage import ReportStore, get_report_store, init_report_store

logger = logging.getLogger(__name__)


# Global pipeline instance
_pipeline: Optional[EmailIRPipeline] = None


def get_settings() -> Settings:
    """Get current settings."""
    return load_settings()


def init_pipeline(settings: Settings) -> EmailIRPipeline:
    """
    Initialize the inference client, report store and pipeline.

    Called once from the application lifespan.
    """
    global _pipeline
    inference = get_inference_client() or init_inference_client(settings)
    store = get_report_store() or init_report_store(settings)
    _pipeline = create_pipeline(settings, inference, store)
    return _pipeline


def set_pipeline(pipeline: Optional[EmailIRPipeline]):
    """Replace the global pipeline (tests)."""
    global _pipeline
    _pipeline = pipeline


def get_pipeline() -> EmailIRPipeline:
    """Get the pipeline, failing the request if startup did not build one."""
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialized")
    return _pipeline


def get_store() -> ReportStore:
    """Get the report store."""
    store = get_report_store()
    if store is None:
        raise HTTPException(status_code=503, detail="Report store not initialized")
    return store
