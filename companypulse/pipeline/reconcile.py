"""Reconciliation entry point.

reconcile() runs one full cycle for a (company, source) pair: load stored
summaries, plan, execute, and append exactly one run record whatever the
outcome. Cycles for the same pair must not overlap; callers serialize them
(see companypulse.jobs.queue).
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Union

from companypulse.api.schemas import ExternalRecord, ReconcileCounts
from companypulse.db.store import RecordStore
from companypulse.pipeline.change_detector import build_change_summary, plan_reconciliation
from companypulse.pipeline.executor import ReconciliationExecutor
from companypulse.pipeline.run_recorder import RunRecorder
from companypulse.pipeline.sources import SourceConfig, get_source


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def reconcile(
    store: RecordStore,
    company_id: str,
    source: Union[str, SourceConfig],
    incoming: List[ExternalRecord],
    logger: Optional[logging.Logger] = None,
    now: Optional[str] = None,
) -> ReconcileCounts:
    """Synchronize stored rows for the pair with a freshly fetched list.

    Persistence errors propagate unchanged after a failed run has been
    recorded with the counts established before the failure.
    """
    log = logger or logging.getLogger(__name__)
    if isinstance(source, str):
        source = get_source(source)

    started_at = now or _now()
    counts = ReconcileCounts(found=len(incoming))
    recorder = RunRecorder(store, logger=log)

    try:
        existing = await store.fetch_summaries(source.table, company_id, source.name)
        plan = plan_reconciliation(existing, incoming, now=started_at)
        counts.skipped = plan.skipped
        log.debug("%s/%s plan: %s", company_id, source.name, build_change_summary(plan))

        executor = ReconciliationExecutor(store, source, company_id, logger=log)
        await executor.execute(plan, counts)
    except Exception as e:
        log.error("%s/%s: reconciliation failed: %s", company_id, source.name, e, exc_info=True)
        try:
            await recorder.record(
                company_id, source.name, counts, started_at, now or _now(), "failed", error_message=str(e),
            )
        except Exception as rec_err:
            log.error(
                "%s/%s: failed to record failed run: %s",
                company_id, source.name, rec_err, exc_info=True,
            )
        raise e

    await recorder.record(company_id, source.name, counts, started_at, now or _now(), "completed")
    log.info(
        "%s/%s: found=%d created=%d updated=%d removed=%d skipped=%d",
        company_id, source.name, counts.found, counts.created,
        counts.updated, counts.removed, counts.skipped,
    )
    return counts


async def sync_source(
    store: RecordStore,
    company_id: str,
    source: Union[str, SourceConfig],
    fetch: Callable[[], Awaitable[List[ExternalRecord]]],
    logger: Optional[logging.Logger] = None,
    skip_empty: bool = False,
) -> Optional[ReconcileCounts]:
    """Fetch a pair's records and reconcile them.

    A failed fetch is recorded as a failed run with zero counts and
    re-raised. With skip_empty, an empty fetch result is treated as a
    transient blip: nothing is reconciled or recorded and None is returned.
    """
    log = logger or logging.getLogger(__name__)
    if isinstance(source, str):
        source = get_source(source)

    started_at = _now()
    try:
        incoming = await fetch()
    except Exception as e:
        log.error("%s/%s: fetch failed: %s", company_id, source.name, e, exc_info=True)
        await RunRecorder(store, logger=log).record(
            company_id, source.name, ReconcileCounts(), started_at, _now(), "failed", error_message=str(e),
        )
        raise

    if not incoming and skip_empty:
        log.warning("%s/%s: fetch returned no records, skipping reconciliation", company_id, source.name)
        return None

    return await reconcile(store, company_id, source, incoming, logger=log)
