"""
Email IR Decision Models

Triage verdict, extracted feature set and risk assessment.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum

from .email import EmailRecord
from .findings import (
    BehavioralFinding,
    EmotionalPressure,
    HeaderFinding,
    Intent,
    IntentFinding,
    SocialEngineeringPattern,
    UrgencyLevel,
)


class EmailCategory(str, Enum):
    """Triage category, declared from most to least severe."""
    MALWARE = "Malware"
    CEO_FRAUD = "CEO Fraud"
    SEXTORTION = "Sextortion"
    PHISHING = "Phishing"
    OTHER_SUSPICIOUS = "Other Suspicious"
    SPAM = "Spam"
    MARKETING = "Marketing"
    INTERNAL = "Internal"
    SECURITY_AWARENESS = "Security Awareness"
    BENIGN = "Benign"

    @property
    def severity(self) -> int:
        """Higher is more severe."""
        members = list(EmailCategory)
        return len(members) - members.index(self)

    @property
    def is_threat(self) -> bool:
        return self in THREAT_CATEGORIES

    @property
    def is_low_risk(self) -> bool:
        return self in LOW_RISK_CATEGORIES


THREAT_CATEGORIES = (
    EmailCategory.MALWARE,
    EmailCategory.CEO_FRAUD,
    EmailCategory.SEXTORTION,
    EmailCategory.PHISHING,
)

LOW_RISK_CATEGORIES = (
    EmailCategory.SPAM,
    EmailCategory.MARKETING,
    EmailCategory.INTERNAL,
    EmailCategory.SECURITY_AWARENESS,
    EmailCategory.BENIGN,
)


class RiskLevel(str, Enum):
    """Risk level classification."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


def normalize_confidence(value):
    """Accept 0..1 or 0..100 confidence and return the 0..1 form."""
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 1:
        return value / 100.0
    return value


class TriageVerdict(BaseModel):
    """Category proposal or final decision from triage."""
    model_config = ConfigDict(frozen=True)

    category: EmailCategory = Field(..., description="One of the ten triage categories")
    reason: str = Field(..., min_length=1, description="Why, naming at least one signal")
    confidence: float = Field(..., ge=0.0, le=1.0, description="0..1")

    @field_validator("confidence", mode="before")
    @classmethod
    def scale_confidence(cls, value):
        return normalize_confidence(value)


class TriageResult(BaseModel):
    """Triage verdict with every upstream output passed through."""
    model_config = ConfigDict(frozen=True)

    verdict: TriageVerdict
    original_email: EmailRecord
    header: HeaderFinding
    behavioral: BehavioralFinding
    intent: IntentFinding


class FeatureSet(BaseModel):
    """Flat decision features plus pass-through of all prior outputs."""
    model_config = ConfigDict(frozen=True)

    intent: Intent
    urgency: UrgencyLevel
    authority_impersonation: bool
    financial_request: bool
    credential_request: bool
    emotional_pressure: EmotionalPressure
    social_engineering_pattern: SocialEngineeringPattern
    engine_indicators_present: bool
    analysis_summary: str

    original_email: EmailRecord
    triage: TriageVerdict
    header: HeaderFinding
    behavioral: BehavioralFinding
    intent_analysis: IntentFinding

    @property
    def behavioral_red_flags(self) -> list:
        """Names of behavioral / intent signals that indicate risk on their own."""
        flags = []
        if self.authority_impersonation:
            flags.append("authority_impersonation")
        if self.financial_request:
            flags.append("financial_request")
        if self.credential_request:
            flags.append("credential_request")
        if self.emotional_pressure == EmotionalPressure.FEAR:
            flags.append(f"emotional_pressure={self.emotional_pressure.value}")
        if self.social_engineering_pattern not in (
            SocialEngineeringPattern.NONE, SocialEngineeringPattern.INSUFFICIENT_DATA
        ):
            flags.append(f"social_engineering_pattern={self.social_engineering_pattern.value}")
        if self.behavioral.verification_avoidance:
            flags.append("verification_avoidance")
        return flags


class RiskProposal(BaseModel):
    """Inference output for the risk stage before the decision table."""
    risk_level: RiskLevel
    confidence: float = Field(..., ge=0.0, le=1.0)
    justification: str = Field(..., min_length=1)

    @field_validator("confidence", mode="before")
    @classmethod
    def scale_confidence(cls, value):
        return normalize_confidence(value)


class RiskAssessment(BaseModel):
    """Final risk rating with features passed through."""
    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    confidence: float = Field(..., ge=0.0, le=1.0)
    justification: str
    human_review_required: bool = False

    original_email: EmailRecord
    triage: TriageVerdict
    features: FeatureSet
