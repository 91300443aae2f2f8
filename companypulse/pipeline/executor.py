"""Applies a reconciliation plan through the persistence boundary."""

import logging
import uuid
from typing import Any, Dict, Optional

from companypulse.api.schemas import ReconcileCounts, ReconciliationPlan, UpdateEntry
from companypulse.db.store import RecordStore
from companypulse.pipeline.sources import SourceConfig


class ReconciliationExecutor:
    """Writes one plan for a (company, source) pair.

    Creates go out as a single batch, updates row by row, removals as a
    batched soft delete. Rows are never hard-deleted.
    """

    def __init__(
        self,
        store: RecordStore,
        source: SourceConfig,
        company_id: str,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.source = source
        self.company_id = company_id
        self.log = logger or logging.getLogger(__name__)

    def _update_values(self, entry: UpdateEntry, now: str) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        if entry.changed:
            values.update(self.source.build_row(entry.record, entry.normalized))
            values["content_hash"] = entry.fingerprint
        values["last_seen_at"] = now
        values["removed_at"] = None
        return values

    async def execute(
        self,
        plan: ReconciliationPlan,
        counts: Optional[ReconcileCounts] = None,
    ) -> ReconcileCounts:
        """Apply the plan and return created/updated/removed counts.

        counts, when given, is filled in as each stage completes so a
        caller still sees the established numbers if a later stage raises.
        """
        counts = counts if counts is not None else ReconcileCounts()
        table = self.source.table
        now = plan.now

        if plan.to_create:
            rows = []
            for entry in plan.to_create:
                row = self.source.build_row(entry.record, entry.normalized)
                row.update({
                    "id": str(uuid.uuid4()),
                    "company_id": self.company_id,
                    "source": self.source.name,
                    "external_id": entry.external_id,
                    "content_hash": entry.fingerprint,
                    "first_seen_at": now,
                    "last_seen_at": now,
                    "removed_at": None,
                })
                rows.append(row)
            self.log.debug("Creating %d new rows in %s", len(rows), table)
            await self.store.insert_many(table, rows)
            counts.created = len(rows)

        if plan.to_update:
            self.log.debug(
                "Refreshing %d existing rows in %s (%d changed)",
                len(plan.to_update), table, plan.changed_count,
            )
            for entry in plan.to_update:
                await self.store.update_row(table, entry.id, self._update_values(entry, now))
                if entry.changed:
                    counts.updated += 1

        if plan.to_remove:
            self.log.debug("Marking %d rows removed in %s", len(plan.to_remove), table)
            await self.store.mark_removed(table, [entry.id for entry in plan.to_remove], now)
            counts.removed = len(plan.to_remove)

        return counts
