"""Per-source wiring for reconciliation.

Each source (job postings, funding rounds, news articles) names the table
its rows live in and how an incoming record maps onto that table's content
columns. Identity and lifecycle columns
(id, company_id, source, external_id, content_hash, first_seen_at,
last_seen_at, removed_at) are filled in by the executor.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from companypulse.api.schemas import ExternalRecord, NormalizedFields
from companypulse.pipeline.normalizer import clean_text

RowBuilder = Callable[[ExternalRecord, NormalizedFields], Dict[str, Any]]


@dataclass(frozen=True)
class SourceConfig:
    name: str
    table: str
    build_row: RowBuilder


def _dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value)


def job_posting_row(record: ExternalRecord, normalized: NormalizedFields) -> Dict[str, Any]:
    employment_type = clean_text(record.employment_type)
    return {
        "source_url": record.url,
        "title": clean_text(record.title) or "",
        "description": record.change_content,
        "description_html": record.description_html,
        "location": clean_text(record.location),
        "remote_type": normalized.remote_type,
        "is_remote": record.is_remote,
        "employment_type": employment_type.lower() if employment_type else None,
        "seniority_level": normalized.seniority_level,
        "department": record.department or record.team,
        "team": record.team,
        "published_at": record.published_at,
        "job_url": record.url,
        "apply_url": record.apply_url,
        "compensation": _dump_json(record.compensation),
        "secondary_locations": _dump_json(record.secondary_locations),
    }


def funding_round_row(record: ExternalRecord, normalized: NormalizedFields) -> Dict[str, Any]:
    return {
        "source_url": record.url or record.external_id,
        "source_title": clean_text(record.title) or "",
        "raw_content": record.change_content,
        "extracted_data": _dump_json(record.payload),
        "published_at": record.published_at,
    }


def news_article_row(record: ExternalRecord, normalized: NormalizedFields) -> Dict[str, Any]:
    return {
        "source_url": record.url or record.external_id,
        "title": clean_text(record.title) or "",
        "snippet": record.snippet,
        "content": record.change_content,
        "raw_score": record.score,
        "published_at": record.published_at,
    }


SOURCES = {
    "ashby": SourceConfig(name="ashby", table="job_postings", build_row=job_posting_row),
    "fundraising": SourceConfig(name="fundraising", table="funding_rounds", build_row=funding_round_row),
    "news": SourceConfig(name="news", table="news_articles", build_row=news_article_row),
}


def get_source(name: str) -> SourceConfig:
    source = SOURCES.get(name)
    if not source:
        raise ValueError(f"Unknown source: '{name}'. Available: {list(SOURCES.keys())}")
    return source
