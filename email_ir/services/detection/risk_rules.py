"""
Email IR Risk Rules

Decision table that turns the model's risk proposal into the final
rating. The table is keyed on the triage category; the engine-blind
floor and the human-review flag are applied afterwards.
"""

import logging
from typing import List, Tuple

from email_ir.models.decision import (
    EmailCategory,
    FeatureSet,
    RiskAssessment,
    RiskLevel,
    RiskProposal,
    THREAT_CATEGORIES,
)
from email_ir.models.findings import EmotionalPressure, SocialEngineeringPattern
from email_ir.utils.constants import HUMAN_REVIEW_FLAG

logger = logging.getLogger(__name__)


# (risk level, min confidence, max confidence)
THREAT_BAND = (RiskLevel.HIGH, 0.80, 0.95)
SUSPICIOUS_BEHAVIOR_BAND = (RiskLevel.MEDIUM, 0.60, 0.85)
SUSPICIOUS_TECHNICAL_BAND = (RiskLevel.MEDIUM, 0.60, 0.75)
BULK_BAND = (RiskLevel.LOW, 0.85, 0.95)
CLEAN_BAND = (RiskLevel.LOW, 0.90, 0.99)
BEHAVIORAL_FLOOR_BAND = (0.60, 0.85)

HUMAN_REVIEW_THRESHOLD = 0.5


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def has_behavioral_pattern(features: FeatureSet) -> bool:
    """Authority claim, emotional pressure or a social-engineering pattern."""
    return (
        features.authority_impersonation
        or features.emotional_pressure not in (EmotionalPressure.NONE, EmotionalPressure.INSUFFICIENT_DATA)
        or features.social_engineering_pattern not in (
            SocialEngineeringPattern.NONE, SocialEngineeringPattern.INSUFFICIENT_DATA
        )
    )


def is_unverified_sender(features: FeatureSet) -> bool:
    return not features.header.auth_passed or features.header.has_domain_similarity


class RiskRules:
    """Category decision table plus the engine-blind floor."""

    def apply(self, proposal: RiskProposal, features: FeatureSet, ctx=None) -> RiskAssessment:
        """
        Enforce the decision table on a model proposal.

        Args:
            proposal: Risk level, confidence and justification from the model
            features: Extracted features with all prior outputs

        Returns:
            Final RiskAssessment
        """
        level, confidence, notes = self.decision_table(proposal, features)
        level, confidence, notes = self.engine_blind_floor(level, confidence, notes, features)

        # Risk is never more certain than the category it rests on
        triage_confidence = features.triage.confidence
        if triage_confidence < HUMAN_REVIEW_THRESHOLD and confidence > triage_confidence:
            confidence = triage_confidence
            notes.append(f"Confidence limited by triage confidence ({triage_confidence:.2f}).")

        justification = proposal.justification.strip()
        if notes:
            justification = f"{justification} {' '.join(notes)}".strip()

        human_review = level == RiskLevel.HIGH and confidence < HUMAN_REVIEW_THRESHOLD
        if human_review:
            justification = (
                f"{HUMAN_REVIEW_FLAG}: high risk with low confidence ({confidence:.2f}). {justification}"
            )

        if ctx is not None and level != proposal.risk_level:
            ctx.rule_applied("risk_decision_table", proposal.risk_level.value, level.value)

        return RiskAssessment(
            risk_level=level,
            confidence=round(confidence, 4),
            justification=justification,
            human_review_required=human_review,
            original_email=features.original_email,
            triage=features.triage,
            features=features,
        )

    def decision_table(self, proposal: RiskProposal, features: FeatureSet) -> Tuple[RiskLevel, float, List[str]]:
        category = features.triage.category
        level = proposal.risk_level
        confidence = clamp(proposal.confidence, 0.0, 1.0)
        notes: List[str] = []

        if category in THREAT_CATEGORIES:
            level, low, high = THREAT_BAND
            confidence = clamp(confidence, low, high)

        elif category == EmailCategory.OTHER_SUSPICIOUS:
            if has_behavioral_pattern(features):
                if level == RiskLevel.LOW:
                    level = RiskLevel.MEDIUM
                _, low, high = SUSPICIOUS_BEHAVIOR_BAND
                confidence = clamp(confidence, low, high)
            elif features.engine_indicators_present or is_unverified_sender(features):
                level, low, high = SUSPICIOUS_TECHNICAL_BAND
                confidence = clamp(confidence, low, high)
            elif level == RiskLevel.LOW:
                level = RiskLevel.MEDIUM

        elif category in (EmailCategory.SPAM, EmailCategory.MARKETING):
            level, low, high = BULK_BAND
            confidence = clamp(confidence, low, high)

        elif category == EmailCategory.SECURITY_AWARENESS:
            level, low, high = CLEAN_BAND
            confidence = clamp(confidence, low, high)
            notes.append("Authorized security-awareness simulation.")

        elif not features.behavioral_red_flags:
            # Internal / Benign
            level, low, high = CLEAN_BAND
            confidence = clamp(confidence, low, high)

        return level, confidence, notes

    def engine_blind_floor(
        self,
        level: RiskLevel,
        confidence: float,
        notes: List[str],
        features: FeatureSet,
    ) -> Tuple[RiskLevel, float, List[str]]:
        """
        Raise a low rating when behavioral or intent red flags exist.

        Clean engines and absent indicators never justify low risk on their
        own: authority impersonation with a financial request is high, any
        other red flag is at least medium.
        """
        if features.triage.category == EmailCategory.SECURITY_AWARENESS:
            return level, confidence, notes

        red_flags = features.behavioral_red_flags
        if not red_flags:
            return level, confidence, notes

        floor = RiskLevel.MEDIUM
        if features.authority_impersonation and features.financial_request:
            floor = RiskLevel.HIGH

        if level.rank >= floor.rank:
            return level, confidence, notes

        low, high = BEHAVIORAL_FLOOR_BAND
        logger.info(
            f"Engine-blind floor raised risk {level.value} -> {floor.value} "
            f"(engine_indicators_present={features.engine_indicators_present}, flags={red_flags})"
        )
        notes.append(
            f"Rating relies on behavioral signals ({', '.join(red_flags)}); "
            "the absence of engine indicators does not lower risk."
        )
        return floor, clamp(confidence, low, high), notes
