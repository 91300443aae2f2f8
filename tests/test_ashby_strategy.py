"""Tests for the Ashby fetch strategy using a mocked transport."""

import httpx
import pytest

from companypulse.api.schemas import Company
from companypulse.scraper.ashby_strategy import AshbyStrategy
from companypulse.scraper.strategy_factory import create_strategy, identifier_for

ASHBY_RESPONSE = {
    "apiVersion": "1",
    "jobs": [
        {
            "id": "7f1c",
            "title": "Senior Backend Engineer",
            "location": "Remote - US",
            "department": "Engineering",
            "team": "Platform",
            "employmentType": "FullTime",
            "isRemote": True,
            "publishedAt": "2026-10-01T12:00:00.000+00:00",
            "jobUrl": "https://jobs.ashbyhq.com/acme/7f1c",
            "applyUrl": "https://jobs.ashbyhq.com/acme/7f1c/application",
            "descriptionHtml": "<p>Build things</p>",
            "descriptionPlain": "Build things",
            "compensation": {"compensationTierSummary": "$150K – $190K"},
        },
        {
            "id": "9a2b",
            "title": "Recruiter",
            "location": "New York",
            "descriptionHtml": "<p>Hire people</p>",
        },
    ],
}


def make_transport(status=200, payload=ASHBY_RESPONSE, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload)
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_maps_jobs_to_records():
    seen = []
    strategy = AshbyStrategy({"source": "ashby"}, transport=make_transport(seen=seen))
    records = await strategy.fetch("acme")

    assert str(seen[0].url) == "https://api.ashbyhq.com/posting-api/job-board/acme?includeCompensation=true"
    assert len(records) == 2

    first = records[0]
    assert first.external_id == "7f1c"
    assert first.change_content == "Build things"
    assert first.department == "Engineering"
    assert first.is_remote is True
    assert first.compensation == {"compensationTierSummary": "$150K – $190K"}
    assert first.url == "https://jobs.ashbyhq.com/acme/7f1c"


@pytest.mark.asyncio
async def test_falls_back_to_board_url():
    strategy = AshbyStrategy({"source": "ashby"}, transport=make_transport())
    records = await strategy.fetch("acme")
    assert records[1].url == "https://jobs.ashbyhq.com/acme/9a2b"
    assert records[1].change_content == "<p>Hire people</p>"


@pytest.mark.asyncio
async def test_empty_board():
    strategy = AshbyStrategy({"source": "ashby"}, transport=make_transport(payload={"jobs": []}))
    assert await strategy.fetch("acme") == []


@pytest.mark.asyncio
async def test_http_error_propagates():
    strategy = AshbyStrategy({"source": "ashby"}, transport=make_transport(status=404, payload={}))
    with pytest.raises(httpx.HTTPStatusError):
        await strategy.fetch("missing-board")


def test_factory_loads_config():
    strategy = create_strategy("ashby")
    assert isinstance(strategy, AshbyStrategy)
    assert strategy.source_name == "ashby"


def test_factory_rejects_unknown_source():
    with pytest.raises(ValueError):
        create_strategy("fundraising")


def test_identifier_for():
    company = Company(id="1", name="Acme", slug="acme", ashby_board_name="acme-board", created_at="x")
    assert identifier_for("ashby", company) == "acme-board"

    bare = Company(id="2", name="Bare", slug="bare", created_at="x")
    with pytest.raises(ValueError):
        identifier_for("ashby", bare)
