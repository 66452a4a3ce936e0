"""
Email IR Header Analyzer

Authentication, routing and threat-intel assessment of the email headers.
Model output is corrected by deterministic header checks before it leaves
the stage.
"""

import logging

from email_ir.models.email import EmailRecord
from email_ir.models.findings import HeaderAnalysis, HeaderFinding
from email_ir.services.detection.header_signals import (
    apply_header_overrides,
    find_simulation_markers,
    summarize_scans,
)
from email_ir.utils.constants import AUTHENTICATION_RESULTS_HEADER
from email_ir.utils.exceptions import StageError

from .prompts import build_header_prompt

logger = logging.getLogger(__name__)


class HeaderAnalyzer:
    """Header & threat-intel analysis stage."""

    def __init__(self, inference, max_scan_items: int = 10):
        self.inference = inference
        self.max_scan_items = max_scan_items

    async def analyze(self, email: EmailRecord, ctx) -> HeaderAnalysis:
        ctx.step_started(sender=email.from_address, domain=email.sender_domain, sender_ip=email.sender_ip)

        try:
            prompt = build_header_prompt(
                email.to_wire(),
                url_intel=summarize_scans(email.urls, self.max_scan_items),
                ip_intel=summarize_scans(email.ips, self.max_scan_items),
                attachment_intel=summarize_scans(email.attachments, self.max_scan_items),
                auth_results=email.header(AUTHENTICATION_RESULTS_HEADER) or "Not provided",
            )

            finding = await self.inference.infer(prompt, HeaderFinding, ctx)
            finding = apply_header_overrides(finding, email)

            self._log_signals(finding, email, ctx)
            ctx.step_completed(
                spf_pass=finding.spf_pass,
                dkim_pass=finding.dkim_pass,
                dmarc_pass=finding.dmarc_pass,
            )
            return HeaderAnalysis(finding=finding, original_email=email)

        except Exception as e:
            ctx.step_failed(e)
            raise StageError(ctx.stage, str(e)) from e

    def _log_signals(self, finding: HeaderFinding, email: EmailRecord, ctx):
        ctx.auth_results(finding.spf_pass, finding.dkim_pass, finding.dmarc_pass, finding.domain_similarity)

        if not finding.spf_pass:
            ctx.signal_detected("authentication", "SPF_FAILED", "high")
        if not finding.dkim_pass:
            ctx.signal_detected("authentication", "DKIM_FAILED", "high")
        if not finding.dmarc_pass:
            ctx.signal_detected("authentication", "DMARC_FAILED", "high")
        if finding.has_domain_similarity:
            ctx.signal_detected("domain", "TYPOSQUATTING_DETECTED", "high")
        if finding.geolocation_anomaly.strip().lower() not in ("none", "", "insufficient data", "insufficient_data"):
            ctx.signal_detected("geolocation", finding.geolocation_anomaly, "medium")
        if finding.security_awareness_detected:
            markers = find_simulation_markers(email)
            ctx.signal_detected("simulation", ", ".join(markers) or "model_detected", "info")
