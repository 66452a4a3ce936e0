"""
Email IR Analysis API Routes

Trigger an incident-response run for a notified email and look up
stored reports.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from email_ir.api.dependencies import get_pipeline, get_store
from email_ir.models.requests import AnalyzeRequest, AnalyzeResponse
from email_ir.utils.security import redact_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email-ir", tags=["email-ir"])


@router.post("/analyze")
async def analyze_notified_email(
    request: AnalyzeRequest,
    pipeline=Depends(get_pipeline),
):
    """
    Run the full analysis pipeline for one notified email.

    Returns:
        200 {success: true, report, runId} or 500 {success: false, error, runId}
    """
    logger.info(f"Analyze request for email {request.id} (token {redact_token(request.access_token)})")

    result = await pipeline.run(request)
    body = AnalyzeResponse.from_result(result).to_body()

    if not result.success:
        return JSONResponse(status_code=500, content=body)
    return body


@router.get("/reports/{run_id}")
async def get_report(run_id: str, store=Depends(get_store)) -> Dict[str, Any]:
    """Get a stored report by run id."""
    record = await store.get(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Report {run_id} not found")
    return record.model_dump(mode="json")


@router.get("/emails/{email_id}/reports")
async def list_email_reports(email_id: str, limit: int = 20, store=Depends(get_store)) -> List[Dict[str, Any]]:
    """Reports produced for one email, newest first."""
    records = await store.list_for_email(email_id, limit=max(1, min(limit, 100)))
    return [
        {
            "run_id": r.run_id,
            "email_id": r.email_id,
            "category": r.category,
            "risk_level": r.risk_level,
            "created_at": r.created_at.isoformat(),
        }
        for r in records
    ]


@router.delete("/reports/{run_id}")
async def delete_report(run_id: str, store=Depends(get_store)) -> Dict[str, Any]:
    """Delete a stored report."""
    deleted = await store.delete(run_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Report {run_id} not found")
    return {"deleted": True, "run_id": run_id}
