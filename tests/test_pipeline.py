"""
Email IR Pipeline Integration Tests

End-to-end runs of the orchestrator with a stand-in fetcher and
inference client.
"""

import asyncio

from factories import (
    StubFetcher,
    StubInference,
    create_bec_email,
    create_marketing_email,
    create_test_email,
    header_finding,
    intent_finding,
    scenario_responses,
    triage_verdict,
)


ALL_STEPS = {
    'fetch-email',
    'header-analysis',
    'behavioral-analysis',
    'intent-analysis',
    'triage',
    'feature-extraction',
    'risk-assessment',
    'reporting',
}


def make_pipeline(email, responses, store=None, delays=None, analysis_timeout=5.0, fetcher=None):
    from email_ir.services.analysis.orchestrator import EmailIRPipeline

    inference = StubInference(responses, delays=delays)
    pipeline = EmailIRPipeline(
        fetcher=fetcher or StubFetcher(email),
        inference=inference,
        store=store,
        analysis_timeout=analysis_timeout,
    )
    return pipeline, inference


def make_request(email_id='email-1'):
    from email_ir.models.requests import AnalyzeRequest

    return AnalyzeRequest(id=email_id, accessToken='secret-token-abcd')


class TestScenarios:
    """Full runs for representative emails."""

    def test_benign_email(self):
        from email_ir.services.storage import InMemoryReportStore

        async def run_test():
            store = InMemoryReportStore()
            pipeline, _ = make_pipeline(create_test_email(), scenario_responses('benign'), store=store)

            result = await pipeline.run(make_request(), run_id='run-benign')

            assert result.success, result.error
            assert result.run_id == 'run-benign'
            summary = result.report.executive_summary
            assert summary.email_category.value == 'Benign'
            assert summary.risk_level.value == 'Low'
            assert summary.evidence_strength.value == 'Strong'
            assert result.report.actions_recommended.p1_immediate == []
            assert {s.step for s in result.steps} == ALL_STEPS
            assert all(s.status.value == 'success' for s in result.steps)

            stored = await store.get('run-benign')
            assert stored.email_id == 'email-1'
            assert stored.category == 'Benign'

        asyncio.run(run_test())

    def test_ceo_fraud_with_clean_engines(self):
        async def run_test():
            pipeline, _ = make_pipeline(create_bec_email(), scenario_responses('bec'))

            result = await pipeline.run(make_request())

            assert result.success, result.error
            report = result.report
            assert report.executive_summary.email_category.value == 'CEO Fraud'
            assert report.executive_summary.risk_level.value == 'High'
            assert report.evidence_flow[-1].finding_label == 'CEO Fraud'
            assert 'Halt the wire transfer' in report.actions_recommended.p1_immediate
            assert len(report.actions_recommended.p2_follow_up) >= 2

        asyncio.run(run_test())

    def test_marketing_email(self):
        async def run_test():
            pipeline, _ = make_pipeline(create_marketing_email(), scenario_responses('marketing'))

            result = await pipeline.run(make_request())

            assert result.success, result.error
            assert result.report.executive_summary.email_category.value == 'Marketing'
            assert result.report.executive_summary.risk_level.value == 'Low'

        asyncio.run(run_test())

    def test_simulation_email(self):
        async def run_test():
            email = create_test_email(headers=[
                {'key': 'Authentication-Results', 'value': 'spf=pass dkim=pass dmarc=pass'},
                {'key': 'X-PhishTest', 'value': 'campaign-7'},
            ])
            responses = scenario_responses('benign')
            responses['IntentFinding'] = intent_finding(intent='phishing', credential_request=True)
            responses['TriageVerdict'] = triage_verdict(category='Phishing', reason='credential_request.')

            pipeline, _ = make_pipeline(email, responses)
            result = await pipeline.run(make_request())

            assert result.success, result.error
            assert result.report.executive_summary.email_category.value == 'Security Awareness'
            assert result.report.executive_summary.risk_level.value == 'Low'
            assert result.report.actions_recommended.p1_immediate == []

        asyncio.run(run_test())

    def test_compromised_account(self):
        async def run_test():
            responses = scenario_responses('benign')
            responses['IntentFinding'] = intent_finding(intent='phishing', credential_request=True)

            pipeline, _ = make_pipeline(create_test_email(), responses)
            result = await pipeline.run(make_request())

            assert result.success, result.error
            assert result.report.executive_summary.email_category.value == 'Phishing'
            assert result.report.executive_summary.risk_level.value == 'High'

        asyncio.run(run_test())


class TestDegradedFetch:
    """A failed fetch still produces a low-confidence report."""

    def test_degraded_run_completes(self, fast_retry):
        from email_ir.services.source.fetcher import EmailFetcher

        async def run_test():
            fetcher = EmailFetcher('https://api.example.com', retry_policy=fast_retry)
            calls = []

            async def failing_request(url, token):
                calls.append(url)
                return 503, None, 'unavailable'

            fetcher._request = failing_request

            pipeline, inference = make_pipeline(None, scenario_responses('benign'), fetcher=fetcher)
            result = await pipeline.run(make_request())

            assert result.success, result.error
            assert len(calls) == fast_retry.max_attempts

            fetch_step = next(s for s in result.steps if s.step == 'fetch-email')
            assert fetch_step.status.value == 'degraded'

            summary = result.report.executive_summary
            assert summary.confidence <= 0.3
            assert summary.evidence_strength.value == 'Limited'
            assert 'could not be retrieved' in result.report.confidence_limitations

            header_prompt = inference.prompts_for('HeaderFinding')[0]
            assert 'x-email-ir-fetch-status: failed' in header_prompt

        asyncio.run(run_test())

    def test_degraded_threat_needs_human_review(self, fast_retry):
        from email_ir.services.source.fetcher import EmailFetcher

        async def run_test():
            fetcher = EmailFetcher('https://api.example.com', retry_policy=fast_retry)

            async def failing_request(url, token):
                return 500, None, 'boom'

            fetcher._request = failing_request

            pipeline, _ = make_pipeline(None, scenario_responses('bec'), fetcher=fetcher)
            result = await pipeline.run(make_request())

            assert result.success, result.error
            assert result.report.executive_summary.risk_level.value == 'High'
            assert 'HUMAN REVIEW REQUIRED' in result.report.confidence_limitations

        asyncio.run(run_test())


class TestFailures:
    """Stage failures fail the run with a step history."""

    def test_analyzer_failure_cancels_siblings(self):
        from email_ir.services.ai.base import AIProviderError

        async def run_test():
            responses = scenario_responses('benign')
            responses['BehavioralFinding'] = AIProviderError('upstream 502')

            pipeline, inference = make_pipeline(
                create_test_email(), responses, delays={'HeaderFinding': 1.0}
            )
            result = await pipeline.run(make_request())

            assert not result.success
            assert result.report is None
            assert 'behavioral-analysis' in result.error

            steps = {s.step: s for s in result.steps}
            assert steps['behavioral-analysis'].status.value == 'failed'
            assert steps['header-analysis'].status.value == 'failed'
            assert 'cancelled' in steps['header-analysis'].error
            assert inference.prompts_for('TriageVerdict') == []

        asyncio.run(run_test())

    def test_simultaneous_failures_all_retrieved(self):
        import gc
        from email_ir.services.ai.base import AIProviderError

        async def run_test():
            loop_errors = []
            asyncio.get_running_loop().set_exception_handler(lambda loop, context: loop_errors.append(context))

            responses = scenario_responses('benign')
            responses['HeaderFinding'] = AIProviderError('upstream 502')
            responses['BehavioralFinding'] = AIProviderError('upstream 503')
            responses['IntentFinding'] = AIProviderError('upstream 504')

            pipeline, _ = make_pipeline(create_test_email(), responses)
            result = await pipeline.run(make_request())

            assert not result.success
            assert 'header-analysis' in result.error

            gc.collect()
            await asyncio.sleep(0)
            assert not [c for c in loop_errors if 'never retrieved' in c.get('message', '')]

        asyncio.run(run_test())

    def test_analysis_timeout(self):
        async def run_test():
            pipeline, inference = make_pipeline(
                create_test_email(),
                scenario_responses('benign'),
                delays={'IntentFinding': 1.0},
                analysis_timeout=0.05,
            )
            result = await pipeline.run(make_request())

            assert not result.success
            assert 'did not complete' in result.error

            steps = {s.step: s for s in result.steps}
            assert steps['intent-analysis'].status.value == 'failed'
            assert 'timed out' in steps['intent-analysis'].error
            assert steps['header-analysis'].status.value == 'success'
            assert inference.prompts_for('TriageVerdict') == []

        asyncio.run(run_test())

    def test_invalid_triage_output_fails_run(self):
        async def run_test():
            responses = scenario_responses('benign')
            responses['TriageVerdict'] = {'category': 'Benign', 'reason': '', 'confidence': 0.9}

            pipeline, inference = make_pipeline(create_test_email(), responses)
            result = await pipeline.run(make_request())

            assert not result.success
            assert 'triage' in result.error
            assert inference.prompts_for('RiskProposal') == []

        asyncio.run(run_test())

    def test_error_hides_credentials(self):
        from email_ir.services.ai.base import AIProviderError

        async def run_test():
            responses = scenario_responses('benign')
            responses['HeaderFinding'] = AIProviderError('rejected Authorization: Bearer secret-token-abcd')

            pipeline, _ = make_pipeline(create_test_email(), responses)
            result = await pipeline.run(make_request())

            assert not result.success
            assert 'secret-token-abcd' not in result.error

        asyncio.run(run_test())


class TestConcurrency:
    """Runs do not share state."""

    def test_parallel_runs_are_independent(self):
        async def run_test():
            pipeline, _ = make_pipeline(create_test_email(), scenario_responses('benign'))

            first, second = await asyncio.gather(
                pipeline.run(make_request('email-a')),
                pipeline.run(make_request('email-b')),
            )

            assert first.success and second.success
            assert first.run_id != second.run_id
            assert first.email_id == 'email-a'
            assert second.email_id == 'email-b'
            assert len(first.steps) == len(second.steps) == len(ALL_STEPS)

        asyncio.run(run_test())

    def test_analyzers_run_concurrently(self):
        async def run_test():
            delays = {'HeaderFinding': 0.2, 'BehavioralFinding': 0.2, 'IntentFinding': 0.2}
            pipeline, _ = make_pipeline(create_test_email(), scenario_responses('benign'), delays=delays)

            result = await pipeline.run(make_request())

            assert result.success, result.error
            # three 0.2s analyzers in sequence would take 600ms
            assert result.duration_ms < 550

        asyncio.run(run_test())
