"""
Email IR In-Memory Report Store

Process-local report storage, the default when no database is configured.
"""

import logging
from collections import OrderedDict
from typing import List, Optional

from email_ir.models.requests import StoredReport

logger = logging.getLogger(__name__)


class InMemoryReportStore:
    """Report storage bounded to the most recent `max_reports` runs."""

    def __init__(self, max_reports: int = 1000):
        self.max_reports = max_reports
        self._reports: "OrderedDict[str, StoredReport]" = OrderedDict()

    async def save(self, record: StoredReport) -> bool:
        self._reports[record.run_id] = record
        self._reports.move_to_end(record.run_id)
        while len(self._reports) > self.max_reports:
            evicted, _ = self._reports.popitem(last=False)
            logger.debug(f"Evicted report {evicted}")
        return True

    async def get(self, run_id: str) -> Optional[StoredReport]:
        return self._reports.get(run_id)

    async def list_for_email(self, email_id: str, limit: int = 20) -> List[StoredReport]:
        matches = [r for r in self._reports.values() if r.email_id == email_id]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return matches[:limit]

    async def delete(self, run_id: str) -> bool:
        return self._reports.pop(run_id, None) is not None

    def count(self) -> int:
        return len(self._reports)
