"""
Email IR SQLite Report Store

Persistent storage for incident reports using SQLite.
"""

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional

from email_ir.models.requests import StoredReport
from email_ir.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class SQLiteReportStore:
    """
    SQLite-based report storage keyed by run id.

    The full report is stored as JSON; category, risk level and email id
    are broken out for lookups.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS reports (
                    run_id TEXT PRIMARY KEY,
                    email_id TEXT NOT NULL,
                    category TEXT NOT NULL,
                    risk_level TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,

                    -- Full JSON data
                    full_data TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_reports_email_id ON reports(email_id);
                CREATE INDEX IF NOT EXISTS idx_reports_created_at ON reports(created_at DESC);
            """)
            conn.commit()
            logger.info(f"SQLite report store initialized at {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database: {e}")
            raise StorageError(f"Failed to initialize report database: {e}") from e
        finally:
            conn.close()

    async def save(self, record: StoredReport) -> bool:
        """
        Save a report.

        Args:
            record: Report with lookup metadata

        Returns:
            True if saved
        """
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO reports (run_id, email_id, category, risk_level, created_at, full_data)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.run_id,
                    record.email_id,
                    record.category,
                    record.risk_level,
                    record.created_at.isoformat(),
                    record.model_dump_json(),
                ),
            )
            conn.commit()
            logger.info(f"Saved report {record.run_id} for email {record.email_id}")
            return True
        except sqlite3.Error as e:
            logger.error(f"Failed to save report {record.run_id}: {e}")
            return False
        finally:
            conn.close()

    async def get(self, run_id: str) -> Optional[StoredReport]:
        """Get a report by run id, or None."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT full_data FROM reports WHERE run_id = ?",
                (run_id,),
            ).fetchone()
            if row:
                return StoredReport.model_validate_json(row["full_data"])
            return None
        except sqlite3.Error as e:
            logger.error(f"Failed to get report {run_id}: {e}")
            return None
        finally:
            conn.close()

    async def list_for_email(self, email_id: str, limit: int = 20) -> List[StoredReport]:
        """Reports for one email, newest first."""
        conn = self._get_connection()
        try:
            rows = conn.execute(
                "SELECT full_data FROM reports WHERE email_id = ? ORDER BY created_at DESC LIMIT ?",
                (email_id, limit),
            ).fetchall()
            return [StoredReport.model_validate_json(row["full_data"]) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Failed to list reports for email {email_id}: {e}")
            return []
        finally:
            conn.close()

    async def delete(self, run_id: str) -> bool:
        """Delete a report."""
        conn = self._get_connection()
        try:
            cursor = conn.execute("DELETE FROM reports WHERE run_id = ?", (run_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted report {run_id}")
            return deleted
        except sqlite3.Error as e:
            logger.error(f"Failed to delete report {run_id}: {e}")
            return False
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM reports").fetchone()[0]
        finally:
            conn.close()
