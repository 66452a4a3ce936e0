"""
Email IR Storage Tests

Tests for the in-memory and SQLite report stores.
"""

import asyncio
from datetime import datetime, timedelta

import pytest


def create_stored_report(run_id='run-1', email_id='email-1', created_at=None):
    from email_ir.models.report import IncidentReport
    from email_ir.models.requests import StoredReport

    report = IncidentReport(
        executive_summary={
            'email_category': 'Spam',
            'verdict': 'Unsolicited bulk mail.',
            'risk_level': 'Low',
            'confidence': 0.9,
            'evidence_strength': 'Strong',
            'confidence_basis': 'Strong evidence.',
            'status': 'Analysis Complete',
            'why_this_matters': 'Noise only.',
        },
        agent_determination='Bulk sender without unsubscribe header.',
        risk_indicators={'observed': ['no list_unsubscribe_present'], 'not_observed': []},
        evidence_flow=[{'step': 1, 'title': 'Verdict', 'description': 'Spam', 'finding_label': 'Spam'}],
        actions_recommended={'p1_immediate': [], 'p2_follow_up': ['Close'], 'p3_hardening': []},
        confidence_limitations='Strong evidence.',
    )
    return StoredReport(
        run_id=run_id,
        email_id=email_id,
        category='Spam',
        risk_level='Low',
        created_at=created_at or datetime.utcnow(),
        report=report,
    )


@pytest.fixture(params=['memory', 'sqlite'])
def store(request, tmp_path):
    from email_ir.services.storage import create_report_store

    return create_report_store(request.param, str(tmp_path / 'reports.db'))


class TestReportStore:
    """Behavior shared by both stores."""

    def test_save_and_get(self, store):
        async def run_test():
            assert await store.save(create_stored_report())

            loaded = await store.get('run-1')
            assert loaded.email_id == 'email-1'
            assert loaded.report.executive_summary.email_category.value == 'Spam'
            assert await store.get('missing') is None

        asyncio.run(run_test())

    def test_list_newest_first(self, store):
        async def run_test():
            now = datetime.utcnow()
            await store.save(create_stored_report('run-old', created_at=now - timedelta(hours=1)))
            await store.save(create_stored_report('run-new', created_at=now))
            await store.save(create_stored_report('run-other', email_id='email-2'))

            reports = await store.list_for_email('email-1')
            assert [r.run_id for r in reports] == ['run-new', 'run-old']

            limited = await store.list_for_email('email-1', limit=1)
            assert [r.run_id for r in limited] == ['run-new']

        asyncio.run(run_test())

    def test_delete(self, store):
        async def run_test():
            await store.save(create_stored_report())

            assert await store.delete('run-1') is True
            assert await store.delete('run-1') is False
            assert store.count() == 0

        asyncio.run(run_test())

    def test_save_replaces_same_run(self, store):
        async def run_test():
            await store.save(create_stored_report())
            await store.save(create_stored_report())

            assert store.count() == 1

        asyncio.run(run_test())


class TestInMemoryStore:
    """In-memory specifics."""

    def test_oldest_evicted(self):
        from email_ir.services.storage import InMemoryReportStore

        async def run_test():
            store = InMemoryReportStore(max_reports=2)
            for i in range(3):
                await store.save(create_stored_report(f'run-{i}'))

            assert store.count() == 2
            assert await store.get('run-0') is None

        asyncio.run(run_test())


class TestStoreFactory:
    """Tests for create_report_store."""

    def test_unknown_type_falls_back_to_memory(self):
        from email_ir.services.storage import InMemoryReportStore, create_report_store

        assert isinstance(create_report_store('redis'), InMemoryReportStore)

    def test_sqlite_creates_parent_directory(self, tmp_path):
        from email_ir.services.storage import SQLiteReportStore, create_report_store

        path = tmp_path / 'nested' / 'dir' / 'reports.db'
        store = create_report_store('sqlite', str(path))

        assert isinstance(store, SQLiteReportStore)
        assert path.exists()
