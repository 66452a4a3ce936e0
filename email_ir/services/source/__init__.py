"""
Email IR Source Module

Retrieval of notified emails from the source-data provider.
"""

from .fetcher import (
    EmailFetcher,
    build_degraded_record,
    normalize_base_url,
    unwrap_payload,
)

__all__ = [
    'EmailFetcher',
    'build_degraded_record',
    'normalize_base_url',
    'unwrap_payload',
]
