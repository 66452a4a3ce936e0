"""
Email IR Storage Module

Report persistence, keyed by run id and email id.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .memory_store import InMemoryReportStore
from .sqlite_store import SQLiteReportStore

logger = logging.getLogger(__name__)

ReportStore = Union[InMemoryReportStore, SQLiteReportStore]

# Singleton instance
_report_store: Optional[ReportStore] = None


def create_report_store(storage_type: str = "memory", database_path: Optional[str] = None) -> ReportStore:
    """Build the store selected by configuration."""
    if storage_type == "sqlite":
        return SQLiteReportStore(Path(database_path or "./data/email_ir.db"))
    if storage_type != "memory":
        logger.warning(f"Unknown storage_type '{storage_type}', using in-memory store")
    return InMemoryReportStore()


def init_report_store(settings) -> ReportStore:
    """Initialize the global report store from settings."""
    global _report_store
    _report_store = create_report_store(settings.storage_type, settings.database_path)
    logger.info(f"Report store: {type(_report_store).__name__}")
    return _report_store


def get_report_store() -> Optional[ReportStore]:
    """Get the global report store instance."""
    return _report_store


__all__ = [
    'InMemoryReportStore',
    'SQLiteReportStore',
    'ReportStore',
    'create_report_store',
    'init_report_store',
    'get_report_store',
]
