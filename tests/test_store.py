"""Tests for the SQLite persistence boundary."""

import sqlite3

import pytest

from companypulse.api.schemas import RunRecord

NOW = "2026-10-19T08:00:00+00:00"


def row(ext_id, company_id="c1", **kwargs):
    values = {
        "id": f"id-{company_id}-{ext_id}", "company_id": company_id, "source": "ashby",
        "external_id": ext_id, "title": "Engineer", "content_hash": "h",
        "first_seen_at": NOW, "last_seen_at": NOW, "removed_at": None,
    }
    values.update(kwargs)
    return values


@pytest.mark.asyncio
async def test_fetch_summaries_includes_removed_rows(store):
    await store.insert_many("job_postings", [row("a"), row("b", removed_at=NOW), row("c", company_id="c2")])
    summaries = await store.fetch_summaries("job_postings", "c1", "ashby")

    by_id = {s.external_id: s for s in summaries}
    assert set(by_id) == {"a", "b"}
    assert by_id["a"].is_active
    assert not by_id["b"].is_active
    assert by_id["a"].fingerprint == "h"


@pytest.mark.asyncio
async def test_duplicate_key_rolls_back_whole_batch(db, store):
    await store.insert_many("job_postings", [row("a")])
    with pytest.raises(sqlite3.IntegrityError):
        await store.insert_many("job_postings", [row("b"), row("a", id="other")])

    cursor = await db.execute("SELECT external_id FROM job_postings")
    assert [r[0] for r in await cursor.fetchall()] == ["a"]


@pytest.mark.asyncio
async def test_update_row(db, store):
    await store.insert_many("job_postings", [row("a", removed_at=NOW)])
    await store.update_row("job_postings", "id-c1-a", {"last_seen_at": "later", "removed_at": None})

    cursor = await db.execute("SELECT last_seen_at, removed_at, first_seen_at FROM job_postings")
    assert tuple(await cursor.fetchone()) == ("later", None, NOW)


@pytest.mark.asyncio
async def test_mark_removed_in_batches(db, store, monkeypatch):
    from companypulse.db import store as store_module
    monkeypatch.setattr(store_module, "REMOVE_BATCH_SIZE", 2)

    await store.insert_many("job_postings", [row(str(i)) for i in range(5)])
    await store.mark_removed("job_postings", [f"id-c1-{i}" for i in range(5)], "gone")

    cursor = await db.execute("SELECT COUNT(*) FROM job_postings WHERE removed_at = 'gone'")
    assert (await cursor.fetchone())[0] == 5


@pytest.mark.asyncio
async def test_mark_removed_keeps_earlier_timestamp(db, store):
    await store.insert_many("job_postings", [row("a", removed_at="first")])
    await store.mark_removed("job_postings", ["id-c1-a"], "second")

    cursor = await db.execute("SELECT removed_at FROM job_postings")
    assert (await cursor.fetchone())[0] == "first"


@pytest.mark.asyncio
async def test_insert_run_assigns_id(store):
    run = RunRecord(company_id="c1", source="ashby", status="completed", started_at=NOW, completed_at=NOW)
    first = await store.insert_run(run)
    second = await store.insert_run(run)
    assert first.id is not None
    assert second.id == first.id + 1
