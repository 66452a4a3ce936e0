"""
Email IR Intent Analyzer

Determines what the email asks the recipient to do: its primary intent,
content type and any financial, credential or authority claims.
"""

import logging

from email_ir.models.email import EmailRecord
from email_ir.models.findings import IntentAnalysis, IntentFinding
from email_ir.utils.exceptions import StageError
from email_ir.utils.sanitizer import body_for_analysis

from .prompts import build_intent_prompt

logger = logging.getLogger(__name__)


class IntentAnalyzer:
    """Intent analysis stage."""

    def __init__(self, inference, max_body_chars: int = 20000):
        self.inference = inference
        self.max_body_chars = max_body_chars

    async def analyze(self, email: EmailRecord, ctx) -> IntentAnalysis:
        ctx.step_started(subject=email.subject)

        try:
            body = body_for_analysis(email.html_body, email.subject, self.max_body_chars)
            prompt = build_intent_prompt(email.to_wire(), body)

            finding = await self.inference.infer(prompt, IntentFinding, ctx)

            if finding.authority_impersonation:
                ctx.signal_detected("intent", f"AUTHORITY_CLAIMED: {finding.authority_claimed}", "high")
            if finding.financial_request:
                ctx.signal_detected("intent", "FINANCIAL_REQUEST", "high")
            if finding.credential_request:
                ctx.signal_detected("intent", "CREDENTIAL_REQUEST", "high")

            ctx.step_completed(intent=finding.intent.value, content_type=finding.content_type.value)
            return IntentAnalysis(finding=finding, original_email=email)

        except Exception as e:
            ctx.step_failed(e)
            raise StageError(ctx.stage, str(e)) from e
