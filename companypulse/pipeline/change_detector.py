"""Change detection between reconciliation cycles.

Compares the records fetched this cycle against the rows already stored
for a (company, source) pair and produces a plan of creates, updates and
removals. Planning is pure: it performs no I/O and holds no resources.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from companypulse.api.schemas import (
    CreateEntry,
    ExternalRecord,
    PersistedRecordSummary,
    ReconciliationPlan,
    RemoveEntry,
    UpdateEntry,
)
from companypulse.pipeline.fingerprint import fingerprint
from companypulse.pipeline.normalizer import normalize_fields

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def detect_changes(previous_ids: Set[str], current_ids: Set[str]) -> Dict[str, set]:
    """Diff two sets of external IDs to find added, removed, and retained.

    Args:
        previous_ids: External IDs already stored for the pair.
        current_ids: External IDs from the current fetch.

    Returns:
        Dict with 'added', 'removed', and 'retained' sets.
    """
    return {
        "added": current_ids - previous_ids,
        "removed": previous_ids - current_ids,
        "retained": current_ids & previous_ids,
    }


def _external_id(record: ExternalRecord) -> Optional[str]:
    if record.external_id is None:
        return None
    ext_id = record.external_id.strip()
    return ext_id or None


def plan_reconciliation(
    existing: List[PersistedRecordSummary],
    incoming: List[ExternalRecord],
    now: Optional[str] = None,
) -> ReconciliationPlan:
    """Partition incoming records into create, update and remove entries.

    Every incoming record that matches a stored row yields an update entry,
    whether or not its content changed, so that last_seen_at is refreshed
    and removed_at cleared. Only active stored rows can be removed. An empty
    incoming list removes every active row.
    """
    now = now or _now()
    existing_by_id = {row.external_id: row for row in existing}

    accepted: Dict[str, ExternalRecord] = {}
    skipped = 0
    for record in incoming:
        ext_id = _external_id(record)
        if ext_id is None:
            logger.warning("Skipping record without external id (title=%r)", record.title)
            skipped += 1
            continue
        if ext_id in accepted:
            logger.warning("Skipping duplicate external id %s", ext_id)
            skipped += 1
            continue
        accepted[ext_id] = record

    changes = detect_changes(set(existing_by_id), set(accepted))

    plan = ReconciliationPlan(now=now, skipped=skipped)
    for ext_id, record in accepted.items():
        normalized = normalize_fields(record.title, record.location)
        digest = fingerprint(record.change_content)

        if ext_id in changes["added"]:
            plan.to_create.append(CreateEntry(
                external_id=ext_id,
                record=record,
                normalized=normalized,
                fingerprint=digest,
            ))
        else:
            row = existing_by_id[ext_id]
            plan.to_update.append(UpdateEntry(
                id=row.id,
                external_id=ext_id,
                record=record,
                normalized=normalized,
                fingerprint=digest,
                changed=digest != row.fingerprint,
                reactivated=not row.is_active,
            ))

    for ext_id in sorted(changes["removed"]):
        row = existing_by_id[ext_id]
        if row.is_active:
            plan.to_remove.append(RemoveEntry(id=row.id, external_id=ext_id))

    return plan


def build_change_summary(plan: ReconciliationPlan) -> Dict[str, int]:
    """Summarize a plan into counts for logging."""
    return {
        "create_count": len(plan.to_create),
        "update_count": len(plan.to_update),
        "changed_count": plan.changed_count,
        "reactivated_count": sum(1 for e in plan.to_update if e.reactivated),
        "remove_count": len(plan.to_remove),
        "skipped_count": plan.skipped,
    }
