"""
Email IR Behavioral Analyzer

Detects urgency framing, emotional pressure, social-engineering patterns
and verification avoidance in the email body.
"""

import logging

from email_ir.models.email import EmailRecord
from email_ir.models.findings import BehavioralAnalysis, BehavioralFinding, ABSENT_VALUES
from email_ir.utils.exceptions import StageError
from email_ir.utils.sanitizer import body_for_analysis

from .prompts import build_behavioral_prompt

logger = logging.getLogger(__name__)


class BehavioralAnalyzer:
    """Behavioral (social-engineering) analysis stage."""

    def __init__(self, inference, max_body_chars: int = 20000):
        self.inference = inference
        self.max_body_chars = max_body_chars

    async def analyze(self, email: EmailRecord, ctx) -> BehavioralAnalysis:
        ctx.step_started(subject=email.subject)

        try:
            body = body_for_analysis(email.html_body, email.subject, self.max_body_chars)
            prompt = build_behavioral_prompt(email.to_wire(), body)

            finding = await self.inference.infer(prompt, BehavioralFinding, ctx)

            if finding.verification_avoidance:
                ctx.signal_detected("behavioral", "VERIFICATION_AVOIDANCE", "high")
            if finding.social_engineering_pattern.value not in ABSENT_VALUES:
                ctx.signal_detected("behavioral", finding.social_engineering_pattern.value.upper(), "high")
            if finding.emotional_pressure.value not in ABSENT_VALUES:
                ctx.signal_detected("behavioral", f"PRESSURE_{finding.emotional_pressure.value.upper()}", "medium")

            ctx.step_completed(
                urgency_level=finding.urgency_level.value,
                emotional_pressure=finding.emotional_pressure.value,
            )
            return BehavioralAnalysis(finding=finding, original_email=email)

        except Exception as e:
            ctx.step_failed(e)
            raise StageError(ctx.stage, str(e)) from e
