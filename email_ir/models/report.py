"""
Email IR Report Models

The structured incident report produced by the reporting stage.
This is the main output schema.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from enum import Enum

from .decision import EmailCategory


class ReportRiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class EvidenceStrength(str, Enum):
    STRONG = "Strong"
    MODERATE = "Moderate"
    LIMITED = "Limited"

    @classmethod
    def from_confidence(cls, confidence: float) -> "EvidenceStrength":
        if confidence >= 0.8:
            return cls.STRONG
        if confidence >= 0.55:
            return cls.MODERATE
        return cls.LIMITED


# Labels allowed on evidence-flow steps besides the categories
STEP_LABELS = ("PASS", "FLAG", "ALERT", "HIGH")
CATEGORY_LABELS = tuple(c.value for c in EmailCategory)


class ExecutiveSummary(BaseModel):
    """Top-of-report verdict block."""
    email_category: EmailCategory = Field(..., description="Final triage category")
    verdict: str = Field(..., description="One-line verdict")
    risk_level: ReportRiskLevel = Field(..., description="Low / Medium / High / Critical")
    confidence: float = Field(..., ge=0.0, le=1.0, description="0..1")
    evidence_strength: EvidenceStrength = Field(..., description="Banded from confidence")
    confidence_basis: str = Field(..., description="What the confidence rests on")
    status: str = Field(..., description="Analysis status")
    why_this_matters: str = Field(..., description="Business impact in one or two sentences")


class RiskIndicators(BaseModel):
    observed: List[str] = Field(default_factory=list, description="Signals that were present")
    not_observed: List[str] = Field(default_factory=list, description="Signals checked and absent")


class EvidenceStep(BaseModel):
    """One step of the analyst-facing evidence chain."""
    step: int = Field(..., description="Position in the chain, renumbered 1..n")
    title: str
    description: str
    finding_label: Optional[str] = Field(None, description="PASS / FLAG / ALERT / HIGH or a category")

    @field_validator("finding_label")
    @classmethod
    def known_label(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if v.upper() in STEP_LABELS:
            return v.upper()
        if v in CATEGORY_LABELS:
            return v
        raise ValueError(f"finding_label must be one of {', '.join(STEP_LABELS)} or a category, got '{v}'")


class RecommendedActions(BaseModel):
    """Actions split by priority tier."""
    p1_immediate: List[str] = Field(default_factory=list, description="Containment, act now")
    p2_follow_up: List[str] = Field(default_factory=list, description="Investigation follow-up")
    p3_hardening: List[str] = Field(default_factory=list, description="Longer-term hardening")


class IncidentReport(BaseModel):
    """Complete SOC-ready incident report."""
    executive_summary: ExecutiveSummary
    agent_determination: str = Field(..., description="Narrative of how the verdict was reached")
    risk_indicators: RiskIndicators
    evidence_flow: List[EvidenceStep] = Field(..., min_length=1)
    actions_recommended: RecommendedActions
    confidence_limitations: str = Field(..., description="Caveats on the verdict")

    @model_validator(mode="after")
    def final_step_matches_category(self) -> "IncidentReport":
        final_label = self.evidence_flow[-1].finding_label
        category = self.executive_summary.email_category.value
        if not final_label or final_label != category:
            raise ValueError(
                f"final evidence step label '{final_label}' must equal email_category '{category}'"
            )
        return self


class DraftSummary(BaseModel):
    """Narrative fields of the executive summary written by the model."""
    verdict: str
    confidence_basis: str
    why_this_matters: str


class ReportDraft(BaseModel):
    """
    Inference output for the reporting stage.

    Mandatory verdict fields (category, risk level, confidence) are filled
    from upstream by the writer, which also repairs the evidence flow
    before validating the finished report.
    """
    executive_summary: DraftSummary
    agent_determination: str
    risk_indicators: RiskIndicators
    evidence_flow: List[EvidenceStep] = Field(default_factory=list)
    actions_recommended: RecommendedActions
    confidence_limitations: str = ""
