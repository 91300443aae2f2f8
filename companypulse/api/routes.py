"""API routes for CompanyPulse.

Provides endpoints for registering companies, triggering source syncs,
pushing records for reconciliation, polling sync jobs, and reading
postings, news, funding rounds, run history and health metrics.
"""

import json
import logging
from typing import List, Optional
from fastapi import APIRouter, Query, HTTPException

from companypulse.api.schemas import CompanyCreate, ExternalRecord
from companypulse.analytics import insights
from companypulse.db.companies import create_company, get_company, list_companies
from companypulse.db.database import get_db
from companypulse.db.store import SQLiteRecordStore
from companypulse.jobs import queue
from companypulse.pipeline.reconcile import reconcile, sync_source
from companypulse.pipeline.sources import SOURCES
from companypulse.scraper.strategy_factory import create_strategy, identifier_for

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


async def _run_sync(company_id: str, source_name: str) -> dict:
    """Fetch one company's records from a source and reconcile them."""
    db = await get_db()
    try:
        company = await get_company(db, company_id)
        if not company:
            raise ValueError(f"Company {company_id} not found")
        strategy = create_strategy(source_name)
        identifier = identifier_for(source_name, company)

        counts = await sync_source(
            SQLiteRecordStore(db),
            company.id,
            source_name,
            lambda: strategy.fetch(identifier),
        )
        return counts.model_dump()
    finally:
        await db.close()


def _require_source(source: str):
    if source not in SOURCES:
        raise HTTPException(status_code=404, detail=f"Unknown source '{source}'")


@router.post("/companies")
async def register_company(request: CompanyCreate):
    db = await get_db()
    try:
        return await create_company(db, request)
    finally:
        await db.close()


@router.get("/companies")
async def get_companies():
    db = await get_db()
    try:
        return await list_companies(db)
    finally:
        await db.close()


@router.post("/companies/{company_id}/sync/{source}")
async def start_sync(company_id: str, source: str):
    """Start a background fetch + reconcile. Returns job_id for polling."""
    _require_source(source)
    key = queue.pair_key(company_id, source)
    job_id = await queue.enqueue(lambda: _run_sync(company_id, source), key=key)
    return {
        "job_id": job_id,
        "status": "queued",
        "poll_url": f"/api/sync/{job_id}",
    }


@router.get("/sync/{job_id}")
async def get_sync_status(job_id: str):
    """Poll sync job status."""
    status = queue.get_status(job_id)
    if not status:
        raise HTTPException(status_code=404, detail="Job not found")
    return status


@router.post("/companies/{company_id}/records/{source}")
async def push_records(company_id: str, source: str, records: List[ExternalRecord]):
    """Reconcile a record list supplied by the caller (e.g. extracted funding rounds)."""
    _require_source(source)
    db = await get_db()
    try:
        if not await get_company(db, company_id):
            raise HTTPException(status_code=404, detail="Company not found")
        async with queue.serialized(queue.pair_key(company_id, source)):
            counts = await reconcile(SQLiteRecordStore(db), company_id, source, records)
        return counts
    finally:
        await db.close()


@router.get("/companies/{company_id}/postings")
async def list_postings(
    company_id: str,
    include_removed: bool = False,
    department: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    """Query stored job postings for a company, active ones by default."""
    db = await get_db()
    try:
        conditions = ["company_id = ?"]
        params: list = [company_id]

        if not include_removed:
            conditions.append("removed_at IS NULL")
        if department:
            conditions.append("department = ?")
            params.append(department)

        where = " AND ".join(conditions)
        offset = (page - 1) * limit

        cursor = await db.execute(
            f"SELECT COUNT(*) FROM job_postings WHERE {where}", params
        )
        total = (await cursor.fetchone())[0]

        cursor = await db.execute(
            f"""SELECT id, external_id, source, title, location, remote_type,
                       seniority_level, department, employment_type, job_url,
                       compensation, published_at, first_seen_at, last_seen_at,
                       removed_at
                FROM job_postings WHERE {where}
                ORDER BY first_seen_at DESC LIMIT ? OFFSET ?""",
            params + [limit, offset],
        )
        rows = await cursor.fetchall()

        postings = [
            {
                "id": r[0], "external_id": r[1], "source": r[2], "title": r[3],
                "location": r[4], "remote_type": r[5], "seniority_level": r[6],
                "department": r[7], "employment_type": r[8], "job_url": r[9],
                "compensation": json.loads(r[10]) if r[10] else None,
                "published_at": r[11], "first_seen_at": r[12],
                "last_seen_at": r[13], "removed_at": r[14],
            }
            for r in rows
        ]

        return {"total": total, "page": page, "limit": limit, "postings": postings}
    finally:
        await db.close()


@router.get("/companies/{company_id}/news")
async def list_news(
    company_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Active news articles for a company, most recently published first."""
    db = await get_db()
    try:
        cursor = await db.execute(
            """SELECT id, title, snippet, content, source_url, source, raw_score,
                      published_at, first_seen_at
               FROM news_articles WHERE company_id = ? AND removed_at IS NULL
               ORDER BY published_at DESC, first_seen_at DESC LIMIT ? OFFSET ?""",
            (company_id, limit, offset),
        )
        rows = await cursor.fetchall()
        return [
            {
                "id": r[0], "title": r[1], "snippet": r[2], "content": r[3],
                "url": r[4], "source": r[5], "raw_score": r[6],
                "published_at": r[7], "first_seen_at": r[8],
            }
            for r in rows
        ]
    finally:
        await db.close()


@router.get("/companies/{company_id}/funding")
async def list_funding_rounds(company_id: str):
    """Active funding rounds for a company."""
    db = await get_db()
    try:
        cursor = await db.execute(
            """SELECT id, source_url, source_title, extracted_data, published_at,
                      first_seen_at, last_seen_at
               FROM funding_rounds WHERE company_id = ? AND removed_at IS NULL
               ORDER BY published_at DESC, first_seen_at DESC""",
            (company_id,),
        )
        rows = await cursor.fetchall()
        return [
            {
                "id": r[0], "source_url": r[1], "source_title": r[2],
                "extracted_data": json.loads(r[3]) if r[3] else None,
                "published_at": r[4], "first_seen_at": r[5], "last_seen_at": r[6],
            }
            for r in rows
        ]
    finally:
        await db.close()


@router.get("/runs")
async def get_runs(
    company_id: Optional[str] = None,
    source: Optional[str] = None,
    limit: int = Query(30, ge=1, le=200),
):
    db = await get_db()
    try:
        return await insights.get_run_history(db, company_id=company_id, source=source, limit=limit)
    finally:
        await db.close()


@router.get("/companies/{company_id}/health")
async def get_company_health(company_id: str):
    db = await get_db()
    try:
        if not await get_company(db, company_id):
            raise HTTPException(status_code=404, detail="Company not found")
        return await insights.compute_health_metrics(db, company_id)
    finally:
        await db.close()


@router.get("/health")
async def health():
    recent_jobs = queue.list_recent(limit=10)
    active = sum(1 for j in recent_jobs if j["status"] in ("queued", "running"))
    return {"ok": True, "active_jobs": active}
