"""
Email IR Test Factories

Sample notified emails, canned stage outputs and stand-ins for the
inference client and fetcher.
"""

import asyncio
from typing import Any, Callable, Dict, Optional, Union

from email_ir.models.email import EmailRecord
from email_ir.services.analysis.context import RunContext
from email_ir.utils.validation import validate_payload


def create_test_email(**kwargs) -> EmailRecord:
    """Create a test email (wire field names) with default values."""
    defaults = {
        'from': 'jane.doe@partner-corp.com',
        'senderName': 'Jane Doe',
        'subject': 'Meeting notes from Tuesday',
        'htmlBody': '<p>Hi team, attached are the notes from Tuesday. See https://partner-corp.com/notes</p>',
        'senderIp': '203.0.113.10',
        'geoLocation': 'US',
        'headers': [
            {'key': 'Authentication-Results', 'value': 'spf=pass dkim=pass dmarc=pass'},
            {'key': 'Message-ID', 'value': '<abc123@partner-corp.com>'},
        ],
        'urls': [
            {
                'url': 'https://partner-corp.com/notes',
                'analysisList': [{'analysisEngineType': 'VirusTotal', 'result': 'Clean'}],
            }
        ],
        'ips': [],
        'attachments': [],
        'to': ['user@company.com'],
    }
    defaults.update(kwargs)
    return EmailRecord.model_validate(defaults)


def create_bec_email(**kwargs) -> EmailRecord:
    """CEO-impersonation wire request with clean engines."""
    defaults = {
        'from': 'ceo@company-exec.com',
        'senderName': 'John Smith (CEO)',
        'subject': 'Urgent wire transfer',
        'htmlBody': (
            '<p>I need you to process a wire transfer of $48,500 today. '
            'Keep this confidential and do not call me, I am in meetings.</p>'
        ),
        'headers': [
            {'key': 'Authentication-Results', 'value': 'spf=pass dkim=fail dmarc=fail'},
        ],
        'urls': [],
    }
    defaults.update(kwargs)
    return create_test_email(**defaults)


def create_marketing_email(**kwargs) -> EmailRecord:
    defaults = {
        'from': 'deals@shop.example.com',
        'senderName': 'Example Shop',
        'subject': '20% off this weekend',
        'htmlBody': '<p>Our weekend sale starts now. Shop at https://shop.example.com/sale</p>',
        'headers': [
            {'key': 'Authentication-Results', 'value': 'spf=pass dkim=pass dmarc=pass'},
            {'key': 'List-Unsubscribe', 'value': '<https://shop.example.com/unsub>'},
        ],
        'urls': [
            {
                'url': 'https://shop.example.com/sale',
                'analysisList': [{'analysisEngineType': 'VirusTotal', 'result': 'Clean'}],
            }
        ],
    }
    defaults.update(kwargs)
    return create_test_email(**defaults)


# ============================================================================
# Canned stage outputs
# ============================================================================

def header_finding(**kwargs) -> Dict[str, Any]:
    defaults = {
        'spf_pass': True,
        'dkim_pass': True,
        'dmarc_pass': True,
        'domain_similarity': 'none',
        'sender_ip_reputation': 'clean',
        'geolocation_anomaly': 'none',
        'routing_anomaly': 'none',
        'threat_intel_findings': 'No external threats detected',
        'header_summary': 'Sender fully authenticated.',
        'security_awareness_detected': False,
        'list_unsubscribe_present': False,
    }
    defaults.update(kwargs)
    return defaults


def behavioral_finding(**kwargs) -> Dict[str, Any]:
    defaults = {
        'urgency_level': 'none',
        'emotional_pressure': 'none',
        'social_engineering_pattern': 'none',
        'verification_avoidance': False,
        'verification_avoidance_tactics': 'none',
        'urgency_indicators': 'none',
        'emotional_pressure_indicators': 'none',
        'behavioral_summary': 'No manipulation techniques observed.',
    }
    defaults.update(kwargs)
    return defaults


def intent_finding(**kwargs) -> Dict[str, Any]:
    defaults = {
        'intent': 'benign',
        'content_type': 'conversational',
        'financial_request': False,
        'credential_request': False,
        'authority_impersonation': False,
        'financial_request_details': 'insufficient_data',
        'credential_request_details': 'insufficient_data',
        'authority_claimed': 'insufficient_data',
        'intent_summary': 'Shares meeting notes.',
    }
    defaults.update(kwargs)
    return defaults


def triage_verdict(**kwargs) -> Dict[str, Any]:
    defaults = {
        'category': 'Benign',
        'reason': 'All checks pass (spf_pass, dkim_pass) and intent is benign.',
        'confidence': 0.92,
    }
    defaults.update(kwargs)
    return defaults


def risk_proposal(**kwargs) -> Dict[str, Any]:
    defaults = {
        'risk_level': 'low',
        'confidence': 0.95,
        'justification': 'Authenticated sender with no behavioral red flags.',
    }
    defaults.update(kwargs)
    return defaults


def report_draft(**kwargs) -> Dict[str, Any]:
    defaults = {
        'executive_summary': {
            'verdict': 'Legitimate business email.',
            'confidence_basis': 'Authentication and content agree.',
            'why_this_matters': 'No action needed beyond closing the ticket.',
        },
        'agent_determination': 'Authentication passed and the content is routine.',
        'risk_indicators': {
            'observed': [],
            'not_observed': ['credential request', 'financial request'],
        },
        'evidence_flow': [
            {'step': 1, 'title': 'Authentication', 'description': 'SPF/DKIM/DMARC pass', 'finding_label': 'PASS'},
            {'step': 2, 'title': 'Content', 'description': 'Routine notes', 'finding_label': 'PASS'},
        ],
        'actions_recommended': {
            'p1_immediate': [],
            'p2_follow_up': ['Close the ticket'],
            'p3_hardening': [],
        },
        'confidence_limitations': '',
    }
    defaults.update(kwargs)
    return defaults


def scenario_responses(kind: str = 'benign') -> Dict[str, Any]:
    """Canned inference payloads keyed by schema name."""
    if kind == 'bec':
        return {
            'HeaderFinding': header_finding(
                dkim_pass=False,
                dmarc_pass=False,
                header_summary='SPF passes but DKIM and DMARC fail.',
            ),
            'BehavioralFinding': behavioral_finding(
                urgency_level='high',
                emotional_pressure='urgency',
                social_engineering_pattern='pretexting',
                verification_avoidance=True,
                verification_avoidance_tactics='Keep this confidential, do not call me',
                behavioral_summary='Urgent, secretive request that avoids verification.',
            ),
            'IntentFinding': intent_finding(
                intent='fraud',
                content_type='conversational',
                financial_request=True,
                authority_impersonation=True,
                financial_request_details='$48,500 wire transfer',
                authority_claimed='CEO',
                intent_summary='Requests an urgent wire transfer as the CEO.',
            ),
            'TriageVerdict': triage_verdict(
                category='CEO Fraud',
                reason='authority_impersonation and financial_request with urgency_level=high.',
                confidence=0.9,
            ),
            'RiskProposal': risk_proposal(
                risk_level='high',
                confidence=0.9,
                justification='Executive impersonation requesting a wire transfer.',
            ),
            'ReportDraft': report_draft(
                executive_summary={
                    'verdict': 'CEO fraud attempt requesting a wire transfer.',
                    'confidence_basis': 'Authority claim plus financial request.',
                    'why_this_matters': 'Direct financial loss if paid.',
                },
                evidence_flow=[
                    {'step': 1, 'title': 'Authentication', 'description': 'DKIM fails', 'finding_label': 'FLAG'},
                    {'step': 2, 'title': 'Intent', 'description': 'Wire transfer request', 'finding_label': 'HIGH'},
                ],
                actions_recommended={
                    'p1_immediate': ['Halt the wire transfer'],
                    'p2_follow_up': [],
                    'p3_hardening': [],
                },
            ),
        }

    if kind == 'marketing':
        return {
            'HeaderFinding': header_finding(list_unsubscribe_present=True),
            'BehavioralFinding': behavioral_finding(
                urgency_level='low',
                emotional_pressure='reward',
                behavioral_summary='Mild sale urgency.',
            ),
            'IntentFinding': intent_finding(
                content_type='promotional',
                intent_summary='Advertises a weekend sale.',
            ),
            'TriageVerdict': triage_verdict(
                category='Spam',
                reason='Bulk promotional content.',
                confidence=0.8,
            ),
            'RiskProposal': risk_proposal(confidence=0.9, justification='Promotional bulk mail.'),
            'ReportDraft': report_draft(
                evidence_flow=[
                    {'step': 1, 'title': 'Bulk headers', 'description': 'List-Unsubscribe present', 'finding_label': 'PASS'},
                    {'step': 2, 'title': 'Verdict', 'description': 'Promotional', 'finding_label': 'Marketing'},
                ],
            ),
        }

    return {
        'HeaderFinding': header_finding(),
        'BehavioralFinding': behavioral_finding(),
        'IntentFinding': intent_finding(),
        'TriageVerdict': triage_verdict(),
        'RiskProposal': risk_proposal(),
        'ReportDraft': report_draft(),
    }


# ============================================================================
# Stand-ins
# ============================================================================

class StubInference:
    """
    Inference client stand-in returning canned payloads per schema name.

    Payloads go through the same schema validation as the real client.
    A value may be a dict, a callable taking the prompt, or an exception
    instance to raise.
    """

    def __init__(
        self,
        responses: Dict[str, Union[Dict[str, Any], Callable[[str], Any], BaseException]],
        delays: Optional[Dict[str, float]] = None,
    ):
        self.responses = responses
        self.delays = delays or {}
        self.calls = []

    async def infer(self, instruction, schema, ctx=None, **kwargs):
        name = schema.__name__
        self.calls.append((name, instruction))

        if name in self.delays:
            await asyncio.sleep(self.delays[name])

        payload = self.responses[name]
        if isinstance(payload, BaseException):
            raise payload
        if callable(payload):
            payload = payload(instruction)
        return validate_payload(schema, payload)

    def prompts_for(self, schema_name: str):
        return [prompt for name, prompt in self.calls if name == schema_name]


class StubFetcher:
    """Fetcher stand-in returning a fixed record."""

    def __init__(self, email: EmailRecord):
        self.email = email
        self.requests = []

    async def fetch(self, email_id, access_token, base_url=None, ctx=None):
        self.requests.append((email_id, access_token, base_url))
        if ctx is not None:
            ctx.step_started()
            ctx.step_completed()
        return self.email


def make_run_context(run_id: str = 'run-test', email_id: str = 'email-1') -> RunContext:
    return RunContext(run_id=run_id, email_id=email_id)
