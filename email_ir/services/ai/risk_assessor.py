"""
Email IR Risk Assessor

Rates the email low / medium / high from the extracted feature set.
"""

import logging

from email_ir.models.decision import FeatureSet, RiskAssessment, RiskProposal
from email_ir.services.detection.risk_rules import RiskRules
from email_ir.utils.exceptions import StageError

from .prompts import build_risk_prompt

logger = logging.getLogger(__name__)

# Pass-through fields the prompt does not need
FEATURE_PROMPT_EXCLUDE = {"original_email", "triage", "header", "behavioral", "intent_analysis"}


class RiskAssessor:
    """Risk assessment stage."""

    def __init__(self, inference, rules: RiskRules = None):
        self.inference = inference
        self.rules = rules or RiskRules()

    async def assess(self, features: FeatureSet, ctx) -> RiskAssessment:
        ctx.step_started(category=features.triage.category.value)

        try:
            prompt = build_risk_prompt(
                triage=features.triage.model_dump(mode="json"),
                features={
                    **features.model_dump(mode="json", exclude=FEATURE_PROMPT_EXCLUDE),
                    "sender_authenticated": features.header.auth_passed,
                    "behavioral_red_flags": features.behavioral_red_flags,
                },
            )

            proposal = await self.inference.infer(prompt, RiskProposal, ctx)
            ctx.decision("proposed_risk", proposal.risk_level.value, proposal.confidence)

            assessment = self.rules.apply(proposal, features, ctx)
            ctx.decision("risk_level", assessment.risk_level.value, assessment.confidence)
            if assessment.human_review_required:
                ctx.signal_detected("risk", "HUMAN_REVIEW_REQUIRED", "high")

            ctx.step_completed(
                risk_level=assessment.risk_level.value,
                confidence=assessment.confidence,
                human_review_required=assessment.human_review_required,
            )
            return assessment

        except Exception as e:
            ctx.step_failed(e)
            raise StageError(ctx.stage, str(e)) from e
