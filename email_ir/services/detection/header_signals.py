"""
Email IR Header Signals

Deterministic header checks that must not depend on model judgement:
phishing-simulation markers, bulk-mail unsubscribe headers, the degraded
fetch marker, and compaction of scan verdicts for the header prompt.
"""

import logging
from typing import Any, Dict, List, Sequence

from email_ir.models.email import EmailRecord, ScannedItem
from email_ir.models.findings import HeaderFinding
from email_ir.utils.constants import (
    SIMULATION_MARKERS,
    SIMULATION_RESULT_MARKER,
    LIST_UNSUBSCRIBE_HEADERS,
    FETCH_STATUS_HEADER,
    FETCH_STATUS_FAILED,
    MALICIOUS_VERDICTS,
    ERROR_VERDICT,
    CLEAN_VERDICT,
)

logger = logging.getLogger(__name__)


def find_simulation_markers(email: EmailRecord) -> List[str]:
    """
    Return every simulation marker present in the email.

    Header names and values are searched case-insensitively; a top-level
    ``result`` of "Simulation" counts as a marker too.
    """
    found = []
    for entry in email.headers:
        key = entry.key.lower()
        value = (entry.value or "").lower()
        for marker in SIMULATION_MARKERS:
            if marker in key or marker in value:
                found.append(f"{entry.key}: {marker}")
                break

    if email.result and email.result.strip().lower() == SIMULATION_RESULT_MARKER:
        found.append("result: Simulation")

    return found


def is_simulation(email: EmailRecord) -> bool:
    return bool(find_simulation_markers(email))


def has_list_unsubscribe(email: EmailRecord) -> bool:
    """True when a List-Unsubscribe / List-Unsubscribe-Post header exists."""
    return any(email.has_header(name) for name in LIST_UNSUBSCRIBE_HEADERS)


def is_fetch_degraded(email: EmailRecord) -> bool:
    """True for the placeholder record produced when fetching failed."""
    value = email.header(FETCH_STATUS_HEADER)
    return value is not None and value.strip().lower() == FETCH_STATUS_FAILED


def apply_header_overrides(finding: HeaderFinding, email: EmailRecord) -> HeaderFinding:
    """
    Force header flags the raw headers prove, whatever the model said.

    Overrides only ever set flags to True; an absent marker leaves the
    model's value in place.
    """
    updates: Dict[str, Any] = {}

    markers = find_simulation_markers(email)
    if markers and not finding.security_awareness_detected:
        logger.info(f"Simulation markers override model output: {markers}")
        updates["security_awareness_detected"] = True

    if has_list_unsubscribe(email) and not finding.list_unsubscribe_present:
        updates["list_unsubscribe_present"] = True

    if not updates:
        return finding
    return finding.model_copy(update=updates)


def summarize_scans(items: Sequence[ScannedItem], limit: int = 10) -> List[Dict[str, Any]]:
    """
    Compact scan verdicts for prompting.

    At most `limit` items are considered. Items whose every verdict is
    Error are dropped; the rest are MALICIOUS (with the flagging engines)
    or CLEAN (with how many engines scanned them).
    """
    summary = []
    for item in list(items)[:limit]:
        usable = [v for v in item.analysis_list if v.result.value.lower() != ERROR_VERDICT]
        flat = (item.result or "").strip().lower()

        if not usable and flat in ("", ERROR_VERDICT):
            continue

        flagged = [v.engine for v in usable if v.result.value.lower() in MALICIOUS_VERDICTS]
        if flat in MALICIOUS_VERDICTS and not flagged:
            flagged = ["provider"]

        if flagged:
            summary.append({"value": item.value, "status": "MALICIOUS", "engines": flagged})
        else:
            summary.append({"value": item.value, "status": "CLEAN", "scanned_by": len(usable) or 1})
    return summary


def engine_indicators_present(email: EmailRecord) -> bool:
    """
    True iff any scanned URL, IP or attachment carries a verdict that is
    present and not "clean" (case-insensitive).
    """
    for item in [*email.urls, *email.ips, *email.attachments]:
        for verdict in item.verdicts:
            if verdict and verdict != CLEAN_VERDICT:
                return True
    return False


def has_malicious_attachment(email: EmailRecord) -> bool:
    return any(item.is_malicious for item in email.attachments)
