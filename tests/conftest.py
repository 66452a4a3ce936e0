"""
Email IR Test Configuration

Pytest fixtures and configuration.
"""

import pytest

from email_ir.utils.retry import RetryPolicy


@pytest.fixture
def fast_retry():
    """Retry policy without backoff delays."""
    return RetryPolicy(max_attempts=3, base_delay=0, jitter=False)


@pytest.fixture(autouse=True)
def reset_globals():
    """Drop singletons created by a test."""
    yield

    from email_ir.api import dependencies
    from email_ir.services import storage
    from email_ir.services.ai import client

    dependencies.set_pipeline(None)
    storage._report_store = None
    client._inference_client = None
