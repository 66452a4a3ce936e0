"""
Email IR Header Signal Tests

Tests for the deterministic header checks.
"""

from factories import create_marketing_email, create_test_email, header_finding


def scanned(url, *results, flat=None):
    item = {
        'url': url,
        'analysisList': [{'analysisEngineType': f'engine{i}', 'result': r} for i, r in enumerate(results)],
    }
    if flat is not None:
        item['result'] = flat
    return item


class TestSimulationMarkers:
    """Tests for phishing-simulation detection."""

    def test_marker_in_header_name(self):
        from email_ir.services.detection.header_signals import find_simulation_markers, is_simulation

        email = create_test_email(headers=[{'key': 'X-PHISHTEST', 'value': 'campaign-42'}])

        assert is_simulation(email)
        assert find_simulation_markers(email) == ['X-PHISHTEST: x-phishtest']

    def test_marker_in_header_value(self):
        from email_ir.services.detection.header_signals import is_simulation

        email = create_test_email(headers=[{'key': 'X-Mailer', 'value': 'Security-Awareness platform'}])

        assert is_simulation(email)

    def test_simulation_result_field(self):
        from email_ir.services.detection.header_signals import find_simulation_markers

        email = create_test_email(result='Simulation')

        assert 'result: Simulation' in find_simulation_markers(email)

    def test_no_markers(self):
        from email_ir.services.detection.header_signals import is_simulation

        assert not is_simulation(create_test_email())


class TestHeaderOverrides:
    """Model output is corrected by what the headers prove."""

    def test_simulation_forced_true(self):
        from email_ir.models.findings import HeaderFinding
        from email_ir.services.detection.header_signals import apply_header_overrides

        email = create_test_email(headers=[{'key': 'X-KnowBe4-Campaign', 'value': '1'}])
        finding = HeaderFinding(**header_finding(security_awareness_detected=False))

        corrected = apply_header_overrides(finding, email)

        assert corrected.security_awareness_detected is True
        assert finding.security_awareness_detected is False

    def test_list_unsubscribe_forced_true(self):
        from email_ir.models.findings import HeaderFinding
        from email_ir.services.detection.header_signals import apply_header_overrides

        finding = HeaderFinding(**header_finding(list_unsubscribe_present=False))

        corrected = apply_header_overrides(finding, create_marketing_email())

        assert corrected.list_unsubscribe_present is True

    def test_model_true_is_kept_without_markers(self):
        from email_ir.models.findings import HeaderFinding
        from email_ir.services.detection.header_signals import apply_header_overrides

        finding = HeaderFinding(**header_finding(security_awareness_detected=True))

        corrected = apply_header_overrides(finding, create_test_email())

        assert corrected is finding

    def test_list_unsubscribe_post_counts(self):
        from email_ir.services.detection.header_signals import has_list_unsubscribe

        email = create_test_email(headers=[{'key': 'list-unsubscribe-post', 'value': 'List-Unsubscribe=One-Click'}])

        assert has_list_unsubscribe(email)


class TestScanSummaries:
    """Tests for scan verdict compaction."""

    def test_malicious_names_engines(self):
        from email_ir.services.detection.header_signals import summarize_scans

        email = create_test_email(urls=[scanned('http://evil.test', 'Clean', 'Phishing', 'Malicious')])

        summary = summarize_scans(email.urls)

        assert summary == [{'value': 'http://evil.test', 'status': 'MALICIOUS', 'engines': ['engine1', 'engine2']}]

    def test_clean_counts_engines(self):
        from email_ir.services.detection.header_signals import summarize_scans

        email = create_test_email(urls=[scanned('https://ok.test', 'Clean', 'Clean', 'Error')])

        assert summarize_scans(email.urls) == [{'value': 'https://ok.test', 'status': 'CLEAN', 'scanned_by': 2}]

    def test_error_only_items_dropped(self):
        from email_ir.services.detection.header_signals import summarize_scans

        email = create_test_email(urls=[scanned('https://unknown.test', 'Error', 'Error')])

        assert summarize_scans(email.urls) == []

    def test_limit_applies(self):
        from email_ir.services.detection.header_signals import summarize_scans

        email = create_test_email(urls=[scanned(f'https://site{i}.test', 'Clean') for i in range(15)])

        assert len(summarize_scans(email.urls, limit=10)) == 10

    def test_item_values_by_type(self):
        from email_ir.models.email import ScannedItem

        email = create_test_email(
            ips=[{'ip': '203.0.113.9', 'result': 'Clean'}],
            attachments=[{'name': 'invoice.pdf', 'result': 'Clean'}],
        )

        assert email.urls[0].value == 'https://partner-corp.com/notes'
        assert email.ips[0].value == '203.0.113.9'
        assert email.attachments[0].value == 'invoice.pdf'
        assert ScannedItem(result='Clean').value == ''


class TestEngineIndicators:
    """Tests for engine_indicators_present."""

    def test_clean_email(self):
        from email_ir.services.detection.header_signals import engine_indicators_present

        assert engine_indicators_present(create_test_email()) is False

    def test_any_non_clean_verdict(self):
        from email_ir.services.detection.header_signals import engine_indicators_present

        email = create_test_email(ips=[{'ip': '198.51.100.7', 'analysisList': [{'result': 'error'}]}])

        assert engine_indicators_present(email) is True

    def test_flat_result_on_attachment(self):
        from email_ir.services.detection.header_signals import engine_indicators_present, has_malicious_attachment

        email = create_test_email(attachments=[{'name': 'invoice.exe', 'result': 'Malicious'}])

        assert engine_indicators_present(email) is True
        assert has_malicious_attachment(email) is True

    def test_degraded_record_detected(self):
        from email_ir.services.detection.header_signals import is_fetch_degraded
        from email_ir.services.source.fetcher import build_degraded_record

        record = build_degraded_record('email-9', RuntimeError('HTTP 500'))

        assert is_fetch_degraded(record)
        assert not is_fetch_degraded(create_test_email())
