"""
Email IR API Request/Response Models

Ingress payload, pipeline step history and the response envelope.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum
from urllib.parse import urlparse

from .report import IncidentReport


class AnalyzeRequest(BaseModel):
    """Request to analyze one notified email."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, max_length=128, description="Notified email id")
    access_token: str = Field(..., alias="accessToken", min_length=1, max_length=4096,
                              description="Bearer credential for the source-data provider")
    api_base_url: Optional[str] = Field(None, alias="apiBaseUrl",
                                        description="Source-data provider base URL")

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("apiBaseUrl must be an absolute http(s) URL")
        return value


class StepStatus(str, Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"


class StepRecord(BaseModel):
    """Outcome of one pipeline stage."""
    step: str
    status: StepStatus
    duration_ms: int = 0
    error: Optional[str] = None


class PipelineResult(BaseModel):
    """Outcome of one pipeline run."""
    success: bool
    run_id: str
    email_id: str
    report: Optional[IncidentReport] = None
    error: Optional[str] = None
    steps: List[StepRecord] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.utcnow)
    duration_ms: int = 0


class AnalyzeResponse(BaseModel):
    """Response envelope for the analyze endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    report: Optional[IncidentReport] = None
    run_id: Optional[str] = Field(None, alias="runId")
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: PipelineResult) -> "AnalyzeResponse":
        return cls(success=result.success, report=result.report, run_id=result.run_id, error=result.error)

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class StoredReport(BaseModel):
    """Persisted report with lookup metadata."""
    run_id: str
    email_id: str
    category: str
    risk_level: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    report: IncidentReport
