"""
Email IR Report Writer

Produces the final incident report. The model writes the narrative; the
verdict fields, evidence-flow ending, action tiers and limitations are
fixed deterministically from the upstream decisions.
"""

import logging
from typing import Iterable, List, Set

from email_ir.models.decision import EmailCategory, RiskAssessment, RiskLevel
from email_ir.models.email import EmailRecord
from email_ir.models.report import (
    EvidenceStep,
    EvidenceStrength,
    ExecutiveSummary,
    IncidentReport,
    RecommendedActions,
    ReportDraft,
    ReportRiskLevel,
    RiskIndicators,
)
from email_ir.services.detection.header_signals import is_fetch_degraded
from email_ir.services.soc.playbooks import SUSPICIOUS_PLAYBOOK, actions_for
from email_ir.utils.constants import (
    HUMAN_REVIEW_FLAG,
    MAX_ACTIONS_PER_BUCKET,
    MIN_HIGH_RISK_ACTIONS,
    STATUS_ANALYSIS_COMPLETE,
    UNVERIFIED_LINK_PLACEHOLDER,
)
from email_ir.utils.exceptions import StageError
from email_ir.utils.helpers import URL_PATTERN, extract_urls, normalize_url

from .prompts import build_report_prompt

logger = logging.getLogger(__name__)


LIMITATION_TEMPLATES = {
    EvidenceStrength.STRONG: (
        "Strong evidence: independent header, behavioral and intent signals agree on the verdict. "
        "Residual uncertainty is limited to context not visible in the email itself."
    ),
    EvidenceStrength.MODERATE: (
        "Moderate evidence: the verdict rests on a subset of the available signals. "
        "Confirm with the recipient or sender before irreversible actions."
    ),
    EvidenceStrength.LIMITED: (
        "Limited evidence: few reliable signals were available. "
        "Treat the verdict as provisional."
    ),
}


def report_risk_level(assessment: RiskAssessment) -> ReportRiskLevel:
    """High risk confirmed by scanning engines on a threat category is Critical."""
    if (assessment.risk_level == RiskLevel.HIGH
            and assessment.triage.category.is_threat
            and assessment.features.engine_indicators_present):
        return ReportRiskLevel.CRITICAL
    return ReportRiskLevel(assessment.risk_level.value.capitalize())


def known_urls(email: EmailRecord) -> Set[str]:
    """Every URL the email itself contains, normalized."""
    found = [item.url for item in email.urls if item.url]
    found.extend(extract_urls(email.html_body))
    for entry in email.headers:
        found.extend(extract_urls(entry.value))
    return {normalize_url(url) for url in found}


def scrub_urls(text: str, allowed: Set[str]) -> str:
    """Replace URLs that are not in `allowed` with a placeholder."""
    if not text:
        return text

    def replace(match):
        url = match.group(0).rstrip('.,;:!?')
        trailing = match.group(0)[len(url):]
        if normalize_url(url) in allowed:
            return match.group(0)
        return UNVERIFIED_LINK_PLACEHOLDER + trailing

    return URL_PATTERN.sub(replace, text)


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        item = (item or "").strip()
        if item and item.lower() not in seen:
            seen.add(item.lower())
            result.append(item)
    return result


def fit_actions(
    actions: RecommendedActions,
    level: ReportRiskLevel,
    category: EmailCategory,
    engine_indicators: bool,
) -> RecommendedActions:
    """
    Size the action buckets for the risk tier.

    High / Critical: every bucket holds MIN_HIGH_RISK_ACTIONS to
    MAX_ACTIONS_PER_BUCKET items, topped up from the category playbook.
    Low: no immediate actions unless scanning engines flagged something.
    """
    buckets = [
        _unique(actions.p1_immediate),
        _unique(actions.p2_follow_up),
        _unique(actions.p3_hardening),
    ]

    if level in (ReportRiskLevel.HIGH, ReportRiskLevel.CRITICAL):
        for priority, bucket in enumerate(buckets, start=1):
            fallback = [s.title for s in SUSPICIOUS_PLAYBOOK if s.priority == priority]
            for title in actions_for(category, priority) + fallback:
                if len(bucket) >= MIN_HIGH_RISK_ACTIONS:
                    break
                if title.lower() not in {b.lower() for b in bucket}:
                    bucket.append(title)
    elif level == ReportRiskLevel.LOW and not engine_indicators:
        buckets[0] = []

    return RecommendedActions(
        p1_immediate=buckets[0][:MAX_ACTIONS_PER_BUCKET],
        p2_follow_up=buckets[1][:MAX_ACTIONS_PER_BUCKET],
        p3_hardening=buckets[2][:MAX_ACTIONS_PER_BUCKET],
    )


def fix_evidence_flow(steps: List[EvidenceStep], category: EmailCategory, reason: str) -> List[EvidenceStep]:
    """Renumber 1..n and make sure the last step carries the category label."""
    steps = list(steps)
    if not steps or steps[-1].finding_label != category.value:
        steps.append(EvidenceStep(
            step=0,
            title="Final Verdict",
            description=reason,
            finding_label=category.value,
        ))
    return [s.model_copy(update={"step": i}) for i, s in enumerate(steps, start=1)]


def build_limitations(strength: EvidenceStrength, assessment: RiskAssessment, model_notes: str = "") -> str:
    parts = [LIMITATION_TEMPLATES[strength]]
    if is_fetch_degraded(assessment.original_email):
        parts.append("The source email could not be retrieved; analysis ran on a placeholder record.")
    if assessment.human_review_required:
        parts.append(
            f"{HUMAN_REVIEW_FLAG}: the risk is high but confidence is below 0.5; "
            "an analyst must confirm before closing."
        )
    if model_notes and model_notes.strip():
        parts.append(model_notes.strip())
    return " ".join(parts)


class ReportWriter:
    """Reporting stage."""

    def __init__(self, inference):
        self.inference = inference

    def build_context(self, assessment: RiskAssessment, strength: EvidenceStrength) -> dict:
        features = assessment.features
        return {
            "category": assessment.triage.category.value,
            "risk_level": report_risk_level(assessment).value,
            "confidence": assessment.confidence,
            "evidence_strength": strength.value,
            "triage": assessment.triage.model_dump(mode="json"),
            "risk": assessment.model_dump(
                mode="json", include={"risk_level", "confidence", "justification", "human_review_required"}
            ),
            "signals": {
                "header": features.header.model_dump(mode="json"),
                "behavioral": features.behavioral.model_dump(mode="json"),
                "intent": features.intent_analysis.model_dump(mode="json"),
                "engine_indicators_present": features.engine_indicators_present,
                "analysis_summary": features.analysis_summary,
            },
            "email": {
                "from": assessment.original_email.from_address,
                "subject": assessment.original_email.subject,
                "to": assessment.original_email.to,
                "urls": [u.url for u in assessment.original_email.urls],
                "attachments": [a.name for a in assessment.original_email.attachments],
            },
        }

    async def write(self, assessment: RiskAssessment, ctx) -> IncidentReport:
        category = assessment.triage.category
        ctx.step_started(category=category.value, risk_level=assessment.risk_level.value)

        try:
            strength = EvidenceStrength.from_confidence(assessment.confidence)
            prompt = build_report_prompt(self.build_context(assessment, strength))

            draft = await self.inference.infer(prompt, ReportDraft, ctx, max_tokens=3000)
            report = self.finalize(draft, assessment, strength)

            ctx.step_completed(
                category=category.value,
                risk_level=report.executive_summary.risk_level.value,
                evidence_strength=strength.value,
                steps=len(report.evidence_flow),
            )
            return report

        except Exception as e:
            ctx.step_failed(e)
            raise StageError(ctx.stage, str(e)) from e

    def finalize(self, draft: ReportDraft, assessment: RiskAssessment, strength: EvidenceStrength) -> IncidentReport:
        """Overlay upstream values on the model draft and validate the result."""
        category = assessment.triage.category
        level = report_risk_level(assessment)
        allowed = known_urls(assessment.original_email)

        def clean(text: str) -> str:
            return scrub_urls(text, allowed)

        summary = ExecutiveSummary(
            email_category=category,
            verdict=clean(draft.executive_summary.verdict),
            risk_level=level,
            confidence=assessment.confidence,
            evidence_strength=strength,
            confidence_basis=clean(
                f"{strength.value} evidence (confidence {assessment.confidence:.2f}). "
                f"{draft.executive_summary.confidence_basis}"
            ).strip(),
            status=STATUS_ANALYSIS_COMPLETE,
            why_this_matters=clean(draft.executive_summary.why_this_matters),
        )

        steps = [
            s.model_copy(update={"title": clean(s.title), "description": clean(s.description)})
            for s in draft.evidence_flow
        ]
        steps = fix_evidence_flow(steps, category, assessment.triage.reason)

        actions = draft.actions_recommended
        actions = RecommendedActions(
            p1_immediate=[clean(a) for a in actions.p1_immediate],
            p2_follow_up=[clean(a) for a in actions.p2_follow_up],
            p3_hardening=[clean(a) for a in actions.p3_hardening],
        )
        actions = fit_actions(actions, level, category, assessment.features.engine_indicators_present)

        return IncidentReport(
            executive_summary=summary,
            agent_determination=clean(draft.agent_determination),
            risk_indicators=RiskIndicators(
                observed=[clean(i) for i in draft.risk_indicators.observed],
                not_observed=[clean(i) for i in draft.risk_indicators.not_observed],
            ),
            evidence_flow=steps,
            actions_recommended=actions,
            confidence_limitations=build_limitations(strength, assessment, clean(draft.confidence_limitations)),
        )
