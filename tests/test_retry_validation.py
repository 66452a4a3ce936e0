"""
Email IR Retry and Validation Tests

Tests for the retry policy, schema validation and error sanitization.
"""

import asyncio

import pytest


class TestRetryPolicy:
    """Tests for backoff calculation."""

    def test_exponential_backoff_is_capped(self):
        from email_ir.utils.retry import RetryPolicy

        policy = RetryPolicy(base_delay=1.0, max_delay=5.0, jitter=False)

        assert policy.delay_for(1) == 1.0
        assert policy.delay_for(2) == 2.0
        assert policy.delay_for(3) == 4.0
        assert policy.delay_for(4) == 5.0
        assert policy.delay_for(10) == 5.0

    def test_jitter_stays_within_cap(self):
        from email_ir.utils.retry import RetryPolicy

        policy = RetryPolicy(base_delay=1.0, max_delay=3.0, jitter=True)

        for attempt in range(1, 8):
            delay = policy.delay_for(attempt)
            assert 0 < delay <= 3.0

    def test_from_settings(self):
        from email_ir.config import Settings
        from email_ir.utils.retry import RetryPolicy

        settings = Settings(retry_max_attempts=5, retry_base_delay=0.5, retry_jitter=False)
        policy = RetryPolicy.from_settings(settings, attempt_timeout=12.0)

        assert policy.max_attempts == 5
        assert policy.base_delay == 0.5
        assert policy.jitter is False
        assert policy.attempt_timeout == 12.0


class TestWithRetry:
    """Tests for the retry runner."""

    def test_succeeds_after_transient_failures(self, fast_retry):
        from email_ir.utils.retry import with_retry

        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("reset")
            return "ok"

        result = asyncio.run(with_retry(flaky, fast_retry, name="flaky"))

        assert result == "ok"
        assert len(calls) == 3

    def test_exhaustion_raises_with_last_error(self, fast_retry):
        from email_ir.utils.exceptions import RetryExhaustedError
        from email_ir.utils.retry import with_retry

        async def broken():
            raise ConnectionError("still down")

        with pytest.raises(RetryExhaustedError) as exc_info:
            asyncio.run(with_retry(broken, fast_retry, name="broken"))

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, ConnectionError)
        assert "broken failed after 3 attempt(s)" in str(exc_info.value)

    def test_non_retryable_error_is_raised_immediately(self, fast_retry):
        from email_ir.utils.retry import with_retry

        calls = []

        async def rejected():
            calls.append(1)
            raise PermissionError("denied")

        with pytest.raises(PermissionError):
            asyncio.run(with_retry(rejected, fast_retry, should_retry=lambda e: False))

        assert len(calls) == 1

    def test_unlisted_exception_is_not_retried(self, fast_retry):
        from email_ir.utils.retry import with_retry

        calls = []

        async def wrong_type():
            calls.append(1)
            raise KeyError("missing")

        with pytest.raises(KeyError):
            asyncio.run(with_retry(wrong_type, fast_retry, retry_on=(ConnectionError,)))

        assert len(calls) == 1

    def test_attempt_timeout_counts_as_failure(self):
        from email_ir.utils.exceptions import RetryExhaustedError
        from email_ir.utils.retry import RetryPolicy, with_retry

        policy = RetryPolicy(max_attempts=2, base_delay=0, jitter=False, attempt_timeout=0.01)

        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(RetryExhaustedError):
            asyncio.run(with_retry(slow, policy, retry_on=(asyncio.TimeoutError,)))


class TestValidatePayload:
    """Tests for schema validation."""

    def test_valid_payload(self):
        from email_ir.models.decision import TriageVerdict
        from email_ir.utils.validation import validate_payload

        verdict = validate_payload(TriageVerdict, {
            'category': 'Phishing',
            'reason': 'credential_request with spf_pass=false',
            'confidence': 0.85,
        })

        assert verdict.category.value == 'Phishing'
        assert verdict.confidence == 0.85

    def test_percentage_confidence_is_scaled(self):
        from email_ir.models.decision import RiskProposal
        from email_ir.utils.validation import validate_payload

        proposal = validate_payload(RiskProposal, {
            'risk_level': 'medium',
            'confidence': 72,
            'justification': 'Some signals.',
        })

        assert proposal.confidence == pytest.approx(0.72)

    def test_missing_field_lists_location(self):
        from email_ir.models.findings import BehavioralFinding
        from email_ir.utils.exceptions import SchemaValidationError
        from email_ir.utils.validation import validate_payload
        from factories import behavioral_finding

        payload = behavioral_finding()
        del payload['verification_avoidance']

        with pytest.raises(SchemaValidationError) as exc_info:
            validate_payload(BehavioralFinding, payload)

        assert exc_info.value.schema_name == 'BehavioralFinding'
        assert any(err['loc'] == 'verification_avoidance' for err in exc_info.value.errors)

    def test_unknown_enum_value_rejected(self):
        from email_ir.models.findings import IntentFinding
        from email_ir.utils.exceptions import SchemaValidationError
        from email_ir.utils.validation import validate_payload
        from factories import intent_finding

        with pytest.raises(SchemaValidationError):
            validate_payload(IntentFinding, intent_finding(intent='spam'))

    def test_null_enum_rejected(self):
        from email_ir.models.findings import BehavioralFinding
        from email_ir.utils.exceptions import SchemaValidationError
        from email_ir.utils.validation import validate_payload
        from factories import behavioral_finding

        with pytest.raises(SchemaValidationError):
            validate_payload(BehavioralFinding, behavioral_finding(urgency_level=None))

    def test_model_instance_passes_through(self):
        from email_ir.models.decision import TriageVerdict
        from email_ir.utils.validation import validate_payload

        verdict = TriageVerdict(category='Benign', reason='intent=benign', confidence=0.9)
        assert validate_payload(TriageVerdict, verdict) is verdict


class TestErrorSanitization:
    """Credentials never reach messages."""

    def test_bearer_token_hidden(self):
        from email_ir.utils.security import sanitize_error_message

        message = sanitize_error_message("401 for Authorization: Bearer abc.def-123")
        assert "abc.def-123" not in message
        assert "Bearer [hidden]" in message

    def test_api_key_hidden(self):
        from email_ir.utils.security import sanitize_error_message

        message = sanitize_error_message("bad key sk-ABCDEFGHIJKLMNOPQRSTUV")
        assert "ABCDEFGHIJKLMNOP" not in message

    def test_long_message_truncated(self):
        from email_ir.utils.security import sanitize_error_message

        assert len(sanitize_error_message("x" * 1000, max_length=50)) == 53

    def test_redact_token(self):
        from email_ir.utils.security import redact_token

        assert redact_token("secret-token-1234") == "<17 chars, ...1234>"
        assert redact_token("") == "<empty>"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_message_on_every_error(self):
        from email_ir.utils.exceptions import (
            EmailIRBaseException,
            RetryExhaustedError,
            StageError,
            StorageError,
        )

        assert EmailIRBaseException().message == "An error occurred"
        assert StorageError("disk full").message == "disk full"
        assert str(StorageError("disk full")) == "disk full"

        exhausted = RetryExhaustedError("fetch email e-1", 3, ValueError("boom"))
        assert exhausted.message == "fetch email e-1 failed after 3 attempt(s): boom"
        assert isinstance(StageError("triage", "bad output"), EmailIRBaseException)
