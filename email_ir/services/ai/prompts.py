"""
Email IR AI Prompt Templates

Structured prompts for each inference stage of the incident-response pipeline.
"""

import json
from typing import Any, Dict, List, Type

from pydantic import BaseModel


# System prompt shared by every stage
SYSTEM_PROMPT = """You are a senior email incident-response analyst working in a SOC. You assess reported emails for phishing, business email compromise (BEC), extortion, malware delivery and social engineering, and you write findings a junior analyst can act on.

Analysis Guidelines:
1. Base every statement on evidence present in the input. Never invent URLs, domains, IPs or requests.
2. The absence of technical indicators (clean URLs, passing SPF/DKIM) does NOT make an email safe. Behavioral signals and intent are valid risk indicators on their own.
3. When evidence for a field is absent, use the explicit sentinel ("insufficient_data" or "none") rather than guessing.
4. Be concise and specific: reference the sender, headers, phrases and scan verdicts you relied on.

Always respond with valid JSON matching the requested schema."""


def build_schema_block(schema: Type[BaseModel]) -> str:
    """Describe the required response shape from the pydantic model."""
    return (
        "## RESPONSE FORMAT\n"
        "Return ONE JSON object that validates against this JSON Schema. "
        "Every field is required; do not return null.\n"
        f"```json\n{json.dumps(schema.model_json_schema(), indent=2)}\n```"
    )


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def _sender_display(email_data: Dict[str, Any]) -> str:
    name = email_data.get("senderName")
    address = email_data.get("from") or "unknown"
    return f"{name} <{address}>" if name else address


def build_header_prompt(
    email_data: Dict[str, Any],
    url_intel: List[Dict[str, Any]],
    ip_intel: List[Dict[str, Any]],
    attachment_intel: List[Dict[str, Any]],
    auth_results: str,
) -> str:
    """
    Build the header and threat-intel analysis prompt.

    Args:
        email_data: Email record in wire form
        url_intel: Compacted URL scan verdicts
        ip_intel: Compacted IP scan verdicts
        attachment_intel: Compacted attachment scan verdicts
        auth_results: Authentication-Results header value

    Returns:
        Formatted prompt
    """
    headers = email_data.get("headers") or []
    header_dump = "\n".join(f"{h.get('key')}: {h.get('value')}" for h in headers) or "No headers available"

    attachment_section = ""
    if attachment_intel:
        attachment_section = f"**Attachments**:\n{_dump(attachment_intel)}\n"

    return f"""# Task: Header & Threat Intel Analysis
Validate authentication (SPF/DKIM/DMARC), check for routing anomalies, and synthesize the external scan results.

## ANALYSIS CRITERIA
- **SPF / DKIM / DMARC**: true only if the Authentication-Results header explicitly says pass.
- **Domain similarity**: does the sender domain mimic a trusted brand (typosquatting, o->0, i->1, rn->m)? Describe it or answer "none".
- **IP reputation**: clean / suspicious / blocklisted, or "Unknown".
- **Geolocation anomaly**: mismatch between sender IP location and claimed origin, or "none".
- **Routing anomaly**: unusual hop counts or suspicious relays, or "none".
- **Security awareness**: true if simulation markers (e.g. X-Phish-Test headers, training footers) are present.
- **List-Unsubscribe**: true if a List-Unsubscribe or List-Unsubscribe-Post header is present.

## INPUT DATA

**From**: {email_data.get('from') or 'unknown'}
**Sender Name**: {email_data.get('senderName') or 'None'}
**Sender IP**: {email_data.get('senderIp') or 'Unknown'}
**Geolocation**: {email_data.get('geoLocation') or 'Unknown'}

### Threat Intelligence (External Scans)
**URLs**:
{_dump(url_intel)}

**IPs**:
{_dump(ip_intel)}

{attachment_section}
**Authentication-Results Header**:
{auth_results}

### Raw Header Dump
```
{header_dump}
```

## OUTPUT
Summarize malicious URLs, IPs or attachments in threat_intel_findings, or "No external threats detected".
header_summary: 1-2 sentences on the authentication trust level.
If header data is incomplete, state "Insufficient data" for fields you cannot assess."""


def build_behavioral_prompt(email_data: Dict[str, Any], body: str) -> str:
    """Build the behavioral (social-engineering) analysis prompt."""
    return f"""# Task: Psychological & Behavioral Analysis
Identify HOW the sender tries to influence the recipient. Do not judge what is being asked for; that is intent analysis.

## DIRECTIVES
### Urgency framing
- high: "Immediate action required", "Account closing in 1 hour"
- medium: "Please respond by EOD", "Offer expires soon"
- low / none: standard business timelines

### Emotional pressure (dominant trigger)
- fear: threats of account suspension, legal action, exposure
- reward: prizes, bonuses, too-good-to-be-true offers
- urgency: pressure from time alone

### Social-engineering pattern
- pretexting: fabricated scenario or identity ("I'm from IT Support")
- extortion: blackmail or explicit threats
- baiting: curiosity lures ("Your document is ready")

### Verification avoidance (critical)
"Keep this confidential", "Don't call the bank", "Reply to this email only", "Don't tell your manager".

## INPUT DATA
**From**: {_sender_display(email_data)}
**Subject**: {email_data.get('subject') or ''}

**Body Content**:
```
{body}
```

## OUTPUT
Quote the phrases you relied on in the *_indicators / *_tactics fields, or "none".
behavioral_summary: 1-2 sentence forensic summary of the technique.
If the body is empty or too short, use "insufficient_data" for what you cannot assess."""


def build_intent_prompt(email_data: Dict[str, Any], body: str) -> str:
    """Build the intent analysis prompt."""
    return f"""# Task: Body Intent Analysis
Determine WHAT the email asks the recipient to do. Focus on purpose and requests, not manipulation.

## INTENT TYPES
- benign: informational, notification, meeting, legitimate business with no request for money or credentials
- phishing: requests login, password, OTP/MFA code, "verify your account"
- sextortion: claims compromising material and demands payment
- impersonation: claims false authority (CEO, HR, IT, manager) to issue demands
- fraud: wire transfer, invoice payment, gift cards, bank detail change

## CONTENT TYPE
- transactional: receipts, order / shipping / account notices
- informational: newsletters, announcements, status updates
- promotional: offers, sales, product marketing
- conversational: person-to-person correspondence

## REQUEST FLAGS
Set financial_request, credential_request and authority_impersonation to true only with explicit evidence.
Extract the specific artifacts (amount, account, portal, claimed role) into the *_details / authority_claimed fields, or "insufficient_data".

## EMAIL DATA
**From**: {_sender_display(email_data)}
**Subject**: {email_data.get('subject') or ''}

**Body**:
```
{body}
```

## OUTPUT
intent_summary: the "ask" in 1-2 professional sentences. Do not hallucinate requests."""


def build_triage_prompt(
    email_data: Dict[str, Any],
    header: Dict[str, Any],
    behavioral: Dict[str, Any],
    intent: Dict[str, Any],
    body: str,
) -> str:
    """Build the triage classification prompt."""
    recipients = ", ".join(email_data.get("to") or []) or "N/A"

    return f"""# Task: Incident Triage & Classification
Classify the email into exactly ONE category using the preliminary findings below.

## PRELIMINARY FINDINGS
### Header & Authentication
{_dump(header)}

### Behavioral Analysis
{_dump(behavioral)}

### Intent Analysis
{_dump(intent)}

## CRITICAL PRINCIPLE
Clean engine verdicts and passing authentication do NOT imply the email is safe.

## CATEGORY DEFINITIONS
Low-risk: Spam (unsolicited bulk), Marketing (legitimate promotional, newsletters), Internal (company communications),
Security Awareness (authorized phishing simulation), Benign (clearly legitimate, no risk indicators).
High-risk: Phishing (credential harvesting, brand impersonation), Malware (malicious attachment or payload link),
CEO Fraud (executive impersonation with financial or urgent request), Sextortion (blackmail with payment demand),
Other Suspicious (behavioral red flags that fit no other category).

## DECISION RULES
- malicious attachment -> Malware
- simulation markers -> Security Awareness
- executive impersonation + financial/urgent request -> CEO Fraud
- credential request + spoofed or look-alike domain -> Phishing
- extortion threat + payment demand -> Sextortion
- internal domain + legitimate notification + no red flags -> Internal or Benign
- legitimate vendor + promotional -> Marketing
- unknown sender + no clear intent + bulk indicators -> Spam
- behavioral red flags without a clear match -> Other Suspicious

## EMAIL DATA
**Subject**: {email_data.get('subject') or ''}
**Sender**: {_sender_display(email_data)}
**To**: {recipients}
**Body**:
{body}

## OUTPUT
reason: 2-3 sentences that name the specific signals you used (e.g. spf_pass, authority_impersonation).
confidence: 0.0-1.0."""


def build_risk_prompt(triage: Dict[str, Any], features: Dict[str, Any]) -> str:
    """Build the risk assessment prompt."""
    return f"""# Task: Risk Assessment
Assign risk_level (low / medium / high) and confidence for this email.

## DECISION RULES
- Phishing, CEO Fraud, Sextortion, Malware -> high (confidence 0.80-0.95)
- Other Suspicious + (authority impersonation, emotional pressure or social-engineering pattern) -> medium or high (0.60-0.85)
- Other Suspicious + (engine indicators or unverified sender) -> medium (0.60-0.75)
- Spam, Marketing -> low (0.85-0.95)
- Internal with no red flags -> low (0.90-0.98)
- Benign -> low (0.95-0.99)

## ENGINE-BLIND ATTACKS
Do not lower risk because scanning engines report clean. Authority impersonation with a financial request is high risk with or without engine indicators.
If confidence < 0.5 while risk is high, say the case needs human review.

## INPUT DATA
**Triage Result**:
{_dump(triage)}

**Extracted Features**:
{_dump(features)}

## OUTPUT
justification: 2-3 SOC-ready sentences naming what triggered the rating and any caveats."""


def build_report_prompt(context: Dict[str, Any]) -> str:
    """Build the final incident report prompt."""
    return f"""# Task: Incident Report
Write the SOC incident report for this email. The verdict is already decided; explain it.

## MANDATORY VALUES (use verbatim)
| Field | Value |
|---|---|
| **Category** | {context['category']} |
| **Risk Level** | {context['risk_level']} |
| **Confidence** | {context['confidence']:.2f} |
| **Evidence Strength** | {context['evidence_strength']} |

## EVIDENCE FLOW
Build 3-6 ordered steps (authentication, content, intent, engines, verdict). Label each step PASS, FLAG, ALERT or HIGH.
The FINAL step must be labelled exactly "{context['category']}".

## ACTIONS
Split into p1_immediate (containment), p2_follow_up (investigation), p3_hardening (prevention).
For low-risk emails, p1_immediate should normally be empty.
Only reference URLs, domains and IPs that appear in the input.

## INPUT DATA
**Triage**:
{_dump(context['triage'])}

**Risk Assessment**:
{_dump(context['risk'])}

**Signals**:
{_dump(context['signals'])}

**Email**:
{_dump(context['email'])}

## OUTPUT
executive_summary: verdict (one line), confidence_basis, why_this_matters (business impact).
agent_determination: short narrative of how the verdict was reached.
risk_indicators: observed and not_observed signal lists."""
