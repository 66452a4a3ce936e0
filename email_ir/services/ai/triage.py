"""
Email IR Triage Classifier

Assigns exactly one category to the email from the joined header,
behavioral and intent findings. The model proposes; the deterministic
triage rules decide.
"""

import logging

from email_ir.models.decision import TriageResult, TriageVerdict
from email_ir.models.findings import AnalysisBundle
from email_ir.services.detection.triage_rules import TriageRules, TriageSignals
from email_ir.utils.exceptions import StageError
from email_ir.utils.sanitizer import html_to_plain_text, sanitize_email_body

from .prompts import build_triage_prompt

logger = logging.getLogger(__name__)

# Triage only needs the gist of the body; the analyzers saw all of it
TRIAGE_BODY_CHARS = 2000


class TriageClassifier:
    """Triage stage: model proposal followed by conflict-resolution rules."""

    def __init__(self, inference, rules: TriageRules = None):
        self.inference = inference
        self.rules = rules or TriageRules()

    async def classify(self, bundle: AnalysisBundle, ctx) -> TriageResult:
        email = bundle.email
        ctx.step_started(subject=email.subject)

        try:
            body = html_to_plain_text(sanitize_email_body(email.html_body))[:TRIAGE_BODY_CHARS]
            prompt = build_triage_prompt(
                email.to_wire(),
                header=bundle.header.model_dump(mode="json"),
                behavioral=bundle.behavioral.model_dump(mode="json"),
                intent=bundle.intent.model_dump(mode="json"),
                body=body or email.subject or "No body content",
            )

            proposal = await self.inference.infer(prompt, TriageVerdict, ctx)
            ctx.decision("proposed_category", proposal.category.value, proposal.confidence)

            verdict = self.rules.resolve(proposal, TriageSignals.from_bundle(bundle), ctx)
            ctx.decision("category", verdict.category.value, verdict.confidence, verdict.reason)

            ctx.step_completed(category=verdict.category.value, confidence=verdict.confidence)
            return TriageResult(
                verdict=verdict,
                original_email=email,
                header=bundle.header,
                behavioral=bundle.behavioral,
                intent=bundle.intent,
            )

        except Exception as e:
            ctx.step_failed(e)
            raise StageError(ctx.stage, str(e)) from e
