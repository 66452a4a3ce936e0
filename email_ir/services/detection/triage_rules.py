"""
Email IR Triage Rules

Deterministic conflict resolution applied on top of the model's category
proposal. Rules run in a fixed order and each one may replace the
category; every replacement is logged and explained in the reason.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from email_ir.models.decision import EmailCategory, TriageVerdict
from email_ir.models.findings import (
    AnalysisBundle,
    ContentType,
    EmotionalPressure,
    Intent,
    SocialEngineeringPattern,
)
from email_ir.utils.constants import BLOCKLISTED_REPUTATIONS, DEGRADED_CONFIDENCE_CAP

from .header_signals import has_malicious_attachment, is_fetch_degraded

logger = logging.getLogger(__name__)


# Signal names accepted as evidence in a triage reason
SIGNAL_NAMES = (
    "spf_pass",
    "dkim_pass",
    "dmarc_pass",
    "domain_similarity",
    "sender_ip_reputation",
    "security_awareness_detected",
    "list_unsubscribe_present",
    "urgency_level",
    "emotional_pressure",
    "social_engineering_pattern",
    "verification_avoidance",
    "intent",
    "content_type",
    "financial_request",
    "credential_request",
    "authority_impersonation",
    "malicious_attachment",
)

INTENT_CATEGORIES = {
    Intent.PHISHING: EmailCategory.PHISHING,
    Intent.SEXTORTION: EmailCategory.SEXTORTION,
    Intent.IMPERSONATION: EmailCategory.CEO_FRAUD,
}


@dataclass
class TriageSignals:
    """Flattened view of the joined analyses used by the rules."""
    simulation: bool
    fetch_degraded: bool
    list_unsubscribe: bool
    spf_pass: bool
    dkim_pass: bool
    dmarc_pass: bool
    domain_similarity: bool
    ip_blocklisted: bool
    malicious_attachment: bool
    intent: Intent
    content_type: ContentType
    authority_impersonation: bool
    financial_request: bool
    credential_request: bool
    verification_avoidance: bool
    emotional_pressure: EmotionalPressure
    social_engineering_pattern: SocialEngineeringPattern

    @classmethod
    def from_bundle(cls, bundle: AnalysisBundle) -> "TriageSignals":
        header, behavioral, intent = bundle.header, bundle.behavioral, bundle.intent
        reputation = header.sender_ip_reputation.strip().lower()
        return cls(
            simulation=header.security_awareness_detected,
            fetch_degraded=is_fetch_degraded(bundle.email),
            list_unsubscribe=header.list_unsubscribe_present,
            spf_pass=header.spf_pass,
            dkim_pass=header.dkim_pass,
            dmarc_pass=header.dmarc_pass,
            domain_similarity=header.has_domain_similarity,
            ip_blocklisted=any(word in reputation for word in BLOCKLISTED_REPUTATIONS),
            malicious_attachment=has_malicious_attachment(bundle.email),
            intent=intent.intent,
            content_type=intent.content_type,
            authority_impersonation=intent.authority_impersonation,
            financial_request=intent.financial_request,
            credential_request=intent.credential_request,
            verification_avoidance=behavioral.verification_avoidance,
            emotional_pressure=behavioral.emotional_pressure,
            social_engineering_pattern=behavioral.social_engineering_pattern,
        )

    @property
    def auth_passed(self) -> bool:
        return self.spf_pass or self.dkim_pass or self.dmarc_pass

    @property
    def auth_failed(self) -> bool:
        return not self.spf_pass and not self.dkim_pass

    def passed_checks(self) -> List[str]:
        return [name for name, ok in (
            ("spf_pass", self.spf_pass),
            ("dkim_pass", self.dkim_pass),
            ("dmarc_pass", self.dmarc_pass),
        ) if ok]

    def suspicious_signals(self) -> List[str]:
        """Behavioral and intent signals that argue against a low-risk label."""
        found = []
        if self.authority_impersonation:
            found.append("authority_impersonation")
        if self.credential_request:
            found.append("credential_request")
        if self.financial_request:
            found.append("financial_request")
        if self.verification_avoidance:
            found.append("verification_avoidance")
        if self.social_engineering_pattern not in (
            SocialEngineeringPattern.NONE, SocialEngineeringPattern.INSUFFICIENT_DATA
        ):
            found.append(f"social_engineering_pattern={self.social_engineering_pattern.value}")
        if self.emotional_pressure == EmotionalPressure.FEAR:
            found.append("emotional_pressure=fear")
        return found


@dataclass
class _Resolution:
    category: EmailCategory
    notes: List[str] = field(default_factory=list)


class TriageRules:
    """Ordered conflict-resolution rules for triage."""

    def resolve(self, proposal: TriageVerdict, signals: TriageSignals, ctx=None) -> TriageVerdict:
        """
        Apply the rules to a model proposal.

        Args:
            proposal: Category, reason and confidence proposed by the model
            signals: Flattened upstream signals
            ctx: Optional stage context for rule logging

        Returns:
            Final triage verdict
        """
        state = _Resolution(category=proposal.category)

        if signals.simulation:
            self._set(state, EmailCategory.SECURITY_AWARENESS, "simulation_override",
                      "Simulation markers present (security_awareness_detected=true).", ctx)
        else:
            self._compromised_account(state, signals, ctx)
            self._severity_floor(state, signals, ctx)
            self._spam_vs_marketing(state, signals, ctx)
            self._benign_vs_marketing(state, signals, ctx)
            self._ambiguity_fallback(state, signals, ctx)

        reason = proposal.reason.strip()
        if state.notes:
            reason = f"{reason} {' '.join(state.notes)}".strip()
        if not any(name in reason for name in SIGNAL_NAMES):
            reason = f"{reason} {self._signal_summary(signals)}".strip()

        confidence = min(max(proposal.confidence, 0.0), 1.0)
        if signals.fetch_degraded:
            confidence = min(confidence, DEGRADED_CONFIDENCE_CAP)
            reason = f"{reason} Source email was unavailable; verdict based on insufficient_data."

        return TriageVerdict(category=state.category, reason=reason, confidence=confidence)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _compromised_account(self, state: _Resolution, signals: TriageSignals, ctx):
        if not signals.intent.is_malicious:
            return

        target = self._category_for_intent(signals)
        if target.severity <= state.category.severity:
            return
        note = f"Malicious intent={signals.intent.value} outranks the {state.category.value} classification"
        if signals.auth_passed:
            note += (f" despite passing authentication ({', '.join(signals.passed_checks())});"
                     " passing auth is consistent with a compromised or look-alike account.")
        else:
            note += "."
        self._set(state, target, "compromised_account", note, ctx)

    def _severity_floor(self, state: _Resolution, signals: TriageSignals, ctx):
        patterns = []
        if signals.malicious_attachment:
            patterns.append((EmailCategory.MALWARE, "malicious_attachment verdict from scanning engines."))
        if signals.authority_impersonation and signals.financial_request:
            patterns.append((EmailCategory.CEO_FRAUD, "authority_impersonation with financial_request."))
        if (signals.social_engineering_pattern == SocialEngineeringPattern.EXTORTION
                or signals.intent == Intent.SEXTORTION):
            patterns.append((EmailCategory.SEXTORTION, "extortion pattern or sextortion intent."))
        if signals.credential_request and (signals.auth_failed or signals.domain_similarity):
            patterns.append((EmailCategory.PHISHING, "credential_request with failed authentication or domain_similarity."))

        if not patterns:
            return

        target, evidence = max(patterns, key=lambda p: p[0].severity)
        if state.category == EmailCategory.SECURITY_AWARENESS or target.severity <= state.category.severity:
            return
        self._set(state, target, "severity_floor", f"Escalated to {target.value}: {evidence}", ctx)

    def _spam_vs_marketing(self, state: _Resolution, signals: TriageSignals, ctx):
        if state.category not in (EmailCategory.SPAM, EmailCategory.MARKETING):
            return

        if signals.list_unsubscribe and (signals.spf_pass or signals.dkim_pass):
            self._set(state, EmailCategory.MARKETING, "spam_vs_marketing",
                      "list_unsubscribe_present with authenticated sender (spf_pass/dkim_pass) indicates Marketing.",
                      ctx)
        elif not signals.list_unsubscribe and (signals.auth_failed or signals.ip_blocklisted):
            self._set(state, EmailCategory.SPAM, "spam_vs_marketing",
                      "No list_unsubscribe_present and failed authentication or blocklisted "
                      "sender_ip_reputation indicates Spam.",
                      ctx)

    def _benign_vs_marketing(self, state: _Resolution, signals: TriageSignals, ctx):
        if state.category == EmailCategory.BENIGN and signals.content_type == ContentType.PROMOTIONAL:
            self._set(state, EmailCategory.MARKETING, "benign_vs_marketing",
                      "content_type=promotional indicates Marketing rather than Benign.", ctx)
        elif (state.category == EmailCategory.MARKETING
              and signals.content_type in (ContentType.TRANSACTIONAL, ContentType.INFORMATIONAL)
              and not signals.list_unsubscribe):
            self._set(state, EmailCategory.BENIGN, "benign_vs_marketing",
                      f"content_type={signals.content_type.value} without list_unsubscribe_present indicates Benign.",
                      ctx)

    def _ambiguity_fallback(self, state: _Resolution, signals: TriageSignals, ctx):
        if not state.category.is_low_risk or state.category == EmailCategory.SECURITY_AWARENESS:
            return
        suspicious = signals.suspicious_signals()
        if not suspicious:
            return
        self._set(state, EmailCategory.OTHER_SUSPICIOUS, "ambiguity_fallback",
                  f"Suspicious signals ({', '.join(suspicious)}) fit no defined pattern.", ctx)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _category_for_intent(signals: TriageSignals) -> EmailCategory:
        if signals.intent in INTENT_CATEGORIES:
            return INTENT_CATEGORIES[signals.intent]
        # fraud
        if signals.authority_impersonation or signals.financial_request:
            return EmailCategory.CEO_FRAUD
        return EmailCategory.OTHER_SUSPICIOUS

    @staticmethod
    def _set(state: _Resolution, category: EmailCategory, rule: str, note: str, ctx):
        if category == state.category:
            return
        before = state.category
        state.category = category
        state.notes.append(note)
        if ctx is not None:
            ctx.rule_applied(rule, before.value, category.value)
        else:
            logger.info(f"Triage rule {rule}: {before.value} -> {category.value}")

    @staticmethod
    def _signal_summary(signals: TriageSignals) -> str:
        return (
            f"Signals: spf_pass={str(signals.spf_pass).lower()}, "
            f"dkim_pass={str(signals.dkim_pass).lower()}, "
            f"intent={signals.intent.value}, "
            f"list_unsubscribe_present={str(signals.list_unsubscribe).lower()}."
        )
