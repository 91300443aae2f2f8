"""Tests for analytics over reconciled postings."""

from datetime import datetime, timezone

import pytest

from companypulse.analytics import insights
from companypulse.api.schemas import ExternalRecord, ReconcileCounts
from companypulse.pipeline.reconcile import reconcile
from companypulse.pipeline.run_recorder import RunRecorder

COMPANY = "company-1"
AS_OF = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
OLD = "2026-08-01T08:00:00+00:00"
RECENT = "2026-10-15T08:00:00+00:00"


def posting(ext_id, title, location, department):
    return ExternalRecord(
        external_id=ext_id, title=title, location=location,
        department=department, description_plain=f"{ext_id} description",
    )


@pytest.mark.asyncio
async def test_aggregates_exclude_removed_rows(db, store):
    await reconcile(store, COMPANY, "ashby", [
        posting("a", "Senior Engineer", "Remote", "Engineering"),
        posting("b", "Recruiter", "New York", "People"),
        posting("c", "Design Intern", "Hybrid - Berlin", "Design"),
    ], now=OLD)
    # c disappears, d arrives
    await reconcile(store, COMPANY, "ashby", [
        posting("a", "Senior Engineer", "Remote", "Engineering"),
        posting("b", "Recruiter", "New York", "People"),
        posting("d", "Staff Engineer", "Remote", "Engineering"),
    ], now=RECENT)

    assert await insights.get_seniority_distribution(db, COMPANY) == {"senior": 1, "mid": 1, "staff": 1}
    assert await insights.get_remote_distribution(db, COMPANY) == {"remote": 2, "onsite": 1}
    assert await insights.get_department_distribution(db, COMPANY) == {"Engineering": 2, "People": 1}

    counts = await insights.get_posting_counts(db, COMPANY, AS_OF)
    assert counts == {
        "total_active": 3, "added_7d": 1, "removed_7d": 1,
        "added_30d": 1, "removed_30d": 1,
    }


@pytest.mark.asyncio
async def test_health_metrics(db, store):
    await reconcile(store, COMPANY, "ashby", [
        posting("a", "Engineer", "Remote", "Engineering"),
        posting("b", "Recruiter", "New York", "People"),
    ], now=RECENT)

    metrics = await insights.compute_health_metrics(db, COMPANY, AS_OF)
    assert metrics.total_active_jobs == 2
    assert metrics.job_velocity_score == 1.0
    assert metrics.department_diversity_score == 2
    assert metrics.location_diversity_score == 2
    assert metrics.health_score == round(5 / 3, 4)
    assert metrics.growth_indicator == "expanding"
    assert metrics.metric_date == "2026-10-19"


@pytest.mark.asyncio
async def test_health_metrics_without_postings(db):
    metrics = await insights.compute_health_metrics(db, "empty-co", AS_OF)
    assert metrics.total_active_jobs == 0
    assert metrics.job_velocity_score == 0.0
    assert metrics.growth_indicator == "stable"


@pytest.mark.asyncio
async def test_run_history_newest_first(db, store):
    recorder = RunRecorder(store)
    await recorder.record(COMPANY, "ashby", ReconcileCounts(found=1, created=1), OLD, OLD, "completed")
    await recorder.record(COMPANY, "ashby", ReconcileCounts(), RECENT, RECENT, "failed", error_message="timeout")
    await recorder.record("other", "ashby", ReconcileCounts(), RECENT, RECENT, "completed")

    history = await insights.get_run_history(db, company_id=COMPANY)
    assert [h["status"] for h in history] == ["failed", "completed"]
    assert history[0]["error"] == "timeout"
    assert history[1]["created"] == 1
