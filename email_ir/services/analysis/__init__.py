"""
Email IR Analysis Service

Provides the pipeline orchestrator that sequences every stage of a run.
"""

from email_ir.services.analysis.context import RunContext, StageContext
from email_ir.services.analysis.orchestrator import (
    EmailIRPipeline,
    create_pipeline,
)

__all__ = [
    "RunContext",
    "StageContext",
    "EmailIRPipeline",
    "create_pipeline",
]
