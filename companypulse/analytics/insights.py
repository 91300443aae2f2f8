"""Analytics over reconciled job postings.

Every aggregate here counts active rows only (removed_at IS NULL) unless
it is explicitly about removals.
"""

import aiosqlite
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from companypulse.api.schemas import HealthMetrics


async def _distribution(db: aiosqlite.Connection, company_id: str, column: str) -> Dict[str, int]:
    cursor = await db.execute(
        f"""SELECT {column}, COUNT(*) FROM job_postings
            WHERE company_id = ? AND removed_at IS NULL AND {column} IS NOT NULL
            GROUP BY {column} ORDER BY COUNT(*) DESC""",
        (company_id,),
    )
    rows = await cursor.fetchall()
    return {row[0]: row[1] for row in rows}


async def get_seniority_distribution(db: aiosqlite.Connection, company_id: str) -> Dict[str, int]:
    return await _distribution(db, company_id, "seniority_level")


async def get_remote_distribution(db: aiosqlite.Connection, company_id: str) -> Dict[str, int]:
    return await _distribution(db, company_id, "remote_type")


async def get_department_distribution(db: aiosqlite.Connection, company_id: str) -> Dict[str, int]:
    return await _distribution(db, company_id, "department")


async def get_posting_counts(db: aiosqlite.Connection, company_id: str, as_of: datetime) -> Dict[str, int]:
    """Active total plus postings added/removed in the 7 and 30 days before as_of."""
    cutoff_7d = (as_of - timedelta(days=7)).isoformat()
    cutoff_30d = (as_of - timedelta(days=30)).isoformat()
    cursor = await db.execute(
        """SELECT
             SUM(CASE WHEN removed_at IS NULL THEN 1 ELSE 0 END),
             SUM(CASE WHEN removed_at IS NULL AND first_seen_at >= ? THEN 1 ELSE 0 END),
             SUM(CASE WHEN removed_at IS NOT NULL AND removed_at >= ? THEN 1 ELSE 0 END),
             SUM(CASE WHEN removed_at IS NULL AND first_seen_at >= ? THEN 1 ELSE 0 END),
             SUM(CASE WHEN removed_at IS NOT NULL AND removed_at >= ? THEN 1 ELSE 0 END)
           FROM job_postings WHERE company_id = ?""",
        (cutoff_7d, cutoff_7d, cutoff_30d, cutoff_30d, company_id),
    )
    row = await cursor.fetchone()
    keys = ["total_active", "added_7d", "removed_7d", "added_30d", "removed_30d"]
    return {key: int(value or 0) for key, value in zip(keys, row)}


async def _distinct_active(db: aiosqlite.Connection, company_id: str, column: str) -> int:
    cursor = await db.execute(
        f"""SELECT COUNT(DISTINCT {column}) FROM job_postings
            WHERE company_id = ? AND removed_at IS NULL AND {column} IS NOT NULL""",
        (company_id,),
    )
    return (await cursor.fetchone())[0]


async def compute_health_metrics(
    db: aiosqlite.Connection,
    company_id: str,
    as_of: Optional[datetime] = None,
) -> HealthMetrics:
    """Compute the hiring-health snapshot for one company."""
    as_of = as_of or datetime.now(timezone.utc)
    counts = await get_posting_counts(db, company_id, as_of)

    total = counts["total_active"]
    velocity = (counts["added_30d"] - counts["removed_30d"]) / total if total else 0.0
    department_diversity = await _distinct_active(db, company_id, "department")
    location_diversity = await _distinct_active(db, company_id, "location")
    health_score = (velocity + department_diversity + location_diversity) / 3

    if velocity > 0:
        growth = "expanding"
    elif velocity < 0:
        growth = "contracting"
    else:
        growth = "stable"

    return HealthMetrics(
        company_id=company_id,
        metric_date=as_of.date().isoformat(),
        total_active_jobs=total,
        jobs_added_7d=counts["added_7d"],
        jobs_removed_7d=counts["removed_7d"],
        jobs_added_30d=counts["added_30d"],
        jobs_removed_30d=counts["removed_30d"],
        job_velocity_score=round(velocity, 4),
        department_diversity_score=department_diversity,
        location_diversity_score=location_diversity,
        health_score=round(health_score, 4),
        growth_indicator=growth,
        seniority_distribution=await get_seniority_distribution(db, company_id),
        remote_distribution=await get_remote_distribution(db, company_id),
        department_distribution=await get_department_distribution(db, company_id),
    )


async def get_run_history(
    db: aiosqlite.Connection,
    company_id: Optional[str] = None,
    source: Optional[str] = None,
    limit: int = 30,
) -> List[dict]:
    """Get recent reconciliation runs, newest first, failures included."""
    conditions = []
    params: list = []
    if company_id:
        conditions.append("company_id = ?")
        params.append(company_id)
    if source:
        conditions.append("source = ?")
        params.append(source)
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    cursor = await db.execute(
        f"""SELECT id, company_id, source, status, found_count, new_count,
                   updated_count, removed_count, skipped_count, error_message,
                   started_at, completed_at
            FROM scraping_runs {where}
            ORDER BY started_at DESC, id DESC LIMIT ?""",
        params + [limit],
    )
    rows = await cursor.fetchall()
    return [
        {
            "id": r[0], "company_id": r[1], "source": r[2], "status": r[3],
            "found": r[4], "created": r[5], "updated": r[6], "removed": r[7],
            "skipped": r[8], "error": r[9], "started_at": r[10], "completed_at": r[11],
        }
        for r in rows
    ]
