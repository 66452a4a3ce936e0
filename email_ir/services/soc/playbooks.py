"""
Email IR Response Playbooks

Default response steps per triage category. The report writer uses them
to top up the recommended-action buckets when the model returned fewer
items than the risk tier requires.
"""

from dataclasses import dataclass
from typing import Dict, List

from email_ir.models.decision import EmailCategory


@dataclass(frozen=True)
class PlaybookStep:
    """Individual response step."""
    title: str
    priority: int  # 1 = immediate, 2 = follow-up (24h), 3 = hardening


def _steps(p1: List[str], p2: List[str], p3: List[str]) -> List[PlaybookStep]:
    return (
        [PlaybookStep(title, 1) for title in p1]
        + [PlaybookStep(title, 2) for title in p2]
        + [PlaybookStep(title, 3) for title in p3]
    )


PHISHING_PLAYBOOK = _steps(
    p1=[
        "Quarantine the email from all recipient mailboxes",
        "Block sender domain/address at the mail gateway",
        "Block the reported URLs at the web proxy",
    ],
    p2=[
        "Identify all recipients of the campaign",
        "Check for clicks and credential submissions",
        "Reset credentials and revoke sessions for affected users",
    ],
    p3=[
        "Update detection rules for the observed sender and lure",
        "Run targeted phishing awareness for affected users",
        "Document the incident",
    ],
)

CEO_FRAUD_PLAYBOOK = _steps(
    p1=[
        "URGENT: Halt any pending transactions linked to this request",
        "Quarantine the email",
        "Verify the request with the impersonated party out of band",
    ],
    p2=[
        "Check the impersonated account for compromise",
        "Document the financial requests made",
        "Review prior communication from the sender",
    ],
    p3=[
        "Review financial approval controls",
        "Executive awareness briefing on impersonation",
        "Add display-name impersonation rules for executives",
    ],
)

SEXTORTION_PLAYBOOK = _steps(
    p1=[
        "Quarantine the email",
        "Advise the recipient not to pay or reply",
        "Block the sender address",
    ],
    p2=[
        "Check whether the quoted password appears in known breaches",
        "Force a password reset if a real password was quoted",
        "Search for similar emails across mailboxes",
    ],
    p3=[
        "Update detection rules for extortion templates",
        "Share guidance on extortion scams with staff",
        "Document the incident",
    ],
)

MALWARE_PLAYBOOK = _steps(
    p1=[
        "Quarantine the email",
        "Block the attachment hash",
        "Isolate endpoints that opened the attachment",
    ],
    p2=[
        "Identify file downloads and executions",
        "Hunt for C2 communication",
        "Check for persistence and lateral movement",
    ],
    p3=[
        "Update attachment filtering policy",
        "Update detection rules",
        "Document the incident",
    ],
)

SUSPICIOUS_PLAYBOOK = _steps(
    p1=[
        "Quarantine the email pending review",
        "Warn the recipient not to act on the request",
    ],
    p2=[
        "Verify the sender through a known channel",
        "Search for similar emails",
    ],
    p3=[
        "Update detection rules if confirmed malicious",
        "Document the incident",
    ],
)

LOW_RISK_PLAYBOOK = _steps(
    p1=[],
    p2=[
        "Verify analysis results",
        "Release the email to the recipient if held",
    ],
    p3=[
        "Tune filtering to reduce similar reports",
        "Document and close",
    ],
)

SIMULATION_PLAYBOOK = _steps(
    p1=[],
    p2=[
        "Confirm the simulation campaign with the awareness team",
        "Record the user report as a successful detection",
    ],
    p3=[
        "Allowlist simulation infrastructure for reporting workflows",
        "Document and close",
    ],
)

PLAYBOOKS: Dict[EmailCategory, List[PlaybookStep]] = {
    EmailCategory.MALWARE: MALWARE_PLAYBOOK,
    EmailCategory.CEO_FRAUD: CEO_FRAUD_PLAYBOOK,
    EmailCategory.SEXTORTION: SEXTORTION_PLAYBOOK,
    EmailCategory.PHISHING: PHISHING_PLAYBOOK,
    EmailCategory.OTHER_SUSPICIOUS: SUSPICIOUS_PLAYBOOK,
    EmailCategory.SPAM: LOW_RISK_PLAYBOOK,
    EmailCategory.MARKETING: LOW_RISK_PLAYBOOK,
    EmailCategory.INTERNAL: LOW_RISK_PLAYBOOK,
    EmailCategory.SECURITY_AWARENESS: SIMULATION_PLAYBOOK,
    EmailCategory.BENIGN: LOW_RISK_PLAYBOOK,
}


def get_playbook(category: EmailCategory) -> List[PlaybookStep]:
    return PLAYBOOKS.get(category, SUSPICIOUS_PLAYBOOK)


def actions_for(category: EmailCategory, priority: int) -> List[str]:
    """Step titles of one priority tier, in playbook order."""
    return [step.title for step in get_playbook(category) if step.priority == priority]
