"""
Email IR Stage Finding Models

Structured outputs of the header, behavioral and intent analysis stages.
Every field is required; enum fields carry an explicit sentinel
(``insufficient_data`` / ``none``) instead of accepting null or omission.
"""

from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from .email import EmailRecord


class UrgencyLevel(str, Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EmotionalPressure(str, Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    NONE = "none"
    FEAR = "fear"
    URGENCY = "urgency"
    REWARD = "reward"


class SocialEngineeringPattern(str, Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    NONE = "none"
    PRETEXTING = "pretexting"
    EXTORTION = "extortion"
    BAITING = "baiting"


class Intent(str, Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    BENIGN = "benign"
    PHISHING = "phishing"
    SEXTORTION = "sextortion"
    IMPERSONATION = "impersonation"
    FRAUD = "fraud"

    @property
    def is_malicious(self) -> bool:
        return self in (Intent.PHISHING, Intent.SEXTORTION, Intent.IMPERSONATION, Intent.FRAUD)


class ContentType(str, Enum):
    """Business nature of the message body."""
    INSUFFICIENT_DATA = "insufficient_data"
    TRANSACTIONAL = "transactional"
    INFORMATIONAL = "informational"
    PROMOTIONAL = "promotional"
    CONVERSATIONAL = "conversational"


# Values meaning "no signal" for the behavioral enums
ABSENT_VALUES = ("none", "insufficient_data")


class StrictFinding(BaseModel):
    """Base for stage outputs: frozen, all fields required."""
    model_config = ConfigDict(frozen=True, extra="ignore")


class HeaderFinding(StrictFinding):
    """Authentication, routing and threat-intel assessment of the headers."""
    spf_pass: bool = Field(..., description="True only if SPF explicitly passed")
    dkim_pass: bool = Field(..., description="True only if DKIM explicitly passed")
    dmarc_pass: bool = Field(..., description="True only if DMARC explicitly passed")
    domain_similarity: str = Field(..., description="Detected look-alike domain or 'none'")
    sender_ip_reputation: str = Field(..., description="clean / suspicious / blocklisted / Unknown")
    geolocation_anomaly: str = Field(..., description="Geographic mismatch or 'none'")
    routing_anomaly: str = Field(..., description="Suspicious routing or 'none'")
    threat_intel_findings: str = Field(..., description="Summary of scan verdicts")
    header_summary: str = Field(..., description="1-2 sentence authentication assessment")
    security_awareness_detected: bool = Field(..., description="Phishing simulation markers present")
    list_unsubscribe_present: bool = Field(..., description="List-Unsubscribe header present")

    @property
    def auth_failed(self) -> bool:
        return not self.spf_pass and not self.dkim_pass

    @property
    def auth_passed(self) -> bool:
        return self.spf_pass or self.dkim_pass or self.dmarc_pass

    @property
    def has_domain_similarity(self) -> bool:
        value = self.domain_similarity.strip().lower()
        return bool(value) and value not in ABSENT_VALUES and not value.startswith("insufficient")


class BehavioralFinding(StrictFinding):
    """Psychological pressure and social-engineering tactics in the body."""
    urgency_level: UrgencyLevel
    emotional_pressure: EmotionalPressure
    social_engineering_pattern: SocialEngineeringPattern
    verification_avoidance: bool
    verification_avoidance_tactics: str
    urgency_indicators: str
    emotional_pressure_indicators: str
    behavioral_summary: str


class IntentFinding(StrictFinding):
    """What the sender is trying to get the recipient to do."""
    intent: Intent
    content_type: ContentType
    financial_request: bool
    credential_request: bool
    authority_impersonation: bool
    financial_request_details: str
    credential_request_details: str
    authority_claimed: str
    intent_summary: str


class HeaderAnalysis(BaseModel):
    """Header finding with the original email passed through."""
    model_config = ConfigDict(frozen=True)

    finding: HeaderFinding
    original_email: EmailRecord


class BehavioralAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    finding: BehavioralFinding
    original_email: EmailRecord


class IntentAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    finding: IntentFinding
    original_email: EmailRecord


class AnalysisBundle(BaseModel):
    """Joined output of the three concurrent analyzers."""
    model_config = ConfigDict(frozen=True)

    email: EmailRecord
    header: HeaderFinding
    behavioral: BehavioralFinding
    intent: IntentFinding
