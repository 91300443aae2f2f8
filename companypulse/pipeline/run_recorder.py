"""Audit trail of reconciliation cycles.

One scraping_runs row is appended per cycle, successful or not, so run
cadence and failure rate can be read back later. Rows are never updated.
"""

import logging
from typing import Optional

from companypulse.api.schemas import ReconcileCounts, RunRecord
from companypulse.db.store import RecordStore


class RunRecorder:

    def __init__(self, store: RecordStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self.log = logger or logging.getLogger(__name__)

    async def record(
        self,
        company_id: str,
        source: str,
        counts: ReconcileCounts,
        started_at: str,
        completed_at: str,
        status: str,
        error_message: Optional[str] = None,
    ) -> RunRecord:
        run = RunRecord(
            company_id=company_id,
            source=source,
            status=status,
            found_count=counts.found,
            new_count=counts.created,
            updated_count=counts.updated,
            removed_count=counts.removed,
            skipped_count=counts.skipped,
            error_message=error_message,
            started_at=started_at,
            completed_at=completed_at,
        )
        run = await self.store.insert_run(run)
        self.log.debug("Recorded %s run %s for %s/%s", status, run.id, company_id, source)
        return run
