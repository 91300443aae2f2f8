"""SQLite database setup and table creation."""

import aiosqlite
import os

DB_PATH = os.environ.get("COMPANYPULSE_DB", "companypulse.db")

SCHEMA = """
    CREATE TABLE IF NOT EXISTS companies (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        slug TEXT NOT NULL UNIQUE,
        ashby_board_name TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS job_postings (
        id TEXT PRIMARY KEY,
        company_id TEXT NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
        source TEXT NOT NULL,
        external_id TEXT NOT NULL,
        source_url TEXT,
        title TEXT NOT NULL DEFAULT '',
        description TEXT,
        description_html TEXT,
        location TEXT,
        remote_type TEXT,
        is_remote INTEGER,
        employment_type TEXT,
        seniority_level TEXT,
        department TEXT,
        team TEXT,
        published_at TEXT,
        job_url TEXT,
        apply_url TEXT,
        compensation TEXT,
        secondary_locations TEXT,
        content_hash TEXT,
        first_seen_at TEXT NOT NULL,
        last_seen_at TEXT NOT NULL,
        removed_at TEXT,
        UNIQUE(company_id, source, external_id)
    );

    CREATE TABLE IF NOT EXISTS funding_rounds (
        id TEXT PRIMARY KEY,
        company_id TEXT NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
        source TEXT NOT NULL,
        external_id TEXT NOT NULL,
        source_url TEXT NOT NULL,
        source_title TEXT NOT NULL DEFAULT '',
        raw_content TEXT,
        extracted_data TEXT,
        published_at TEXT,
        content_hash TEXT,
        first_seen_at TEXT NOT NULL,
        last_seen_at TEXT NOT NULL,
        removed_at TEXT,
        UNIQUE(company_id, source, external_id)
    );

    CREATE TABLE IF NOT EXISTS news_articles (
        id TEXT PRIMARY KEY,
        company_id TEXT NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
        source TEXT NOT NULL,
        external_id TEXT NOT NULL,
        source_url TEXT NOT NULL,
        title TEXT NOT NULL DEFAULT '',
        snippet TEXT,
        content TEXT,
        raw_score REAL,
        published_at TEXT,
        content_hash TEXT,
        first_seen_at TEXT NOT NULL,
        last_seen_at TEXT NOT NULL,
        removed_at TEXT,
        UNIQUE(company_id, source, external_id)
    );

    CREATE TABLE IF NOT EXISTS scraping_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        company_id TEXT NOT NULL,
        source TEXT NOT NULL,
        status TEXT NOT NULL,
        found_count INTEGER DEFAULT 0,
        new_count INTEGER DEFAULT 0,
        updated_count INTEGER DEFAULT 0,
        removed_count INTEGER DEFAULT 0,
        skipped_count INTEGER DEFAULT 0,
        error_message TEXT,
        started_at TEXT NOT NULL,
        completed_at TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_postings_company ON job_postings(company_id);
    CREATE INDEX IF NOT EXISTS idx_postings_removed ON job_postings(removed_at);
    CREATE INDEX IF NOT EXISTS idx_postings_first_seen ON job_postings(first_seen_at);
    CREATE INDEX IF NOT EXISTS idx_rounds_company ON funding_rounds(company_id);
    CREATE INDEX IF NOT EXISTS idx_rounds_removed ON funding_rounds(removed_at);
    CREATE INDEX IF NOT EXISTS idx_news_company ON news_articles(company_id);
    CREATE INDEX IF NOT EXISTS idx_news_removed ON news_articles(removed_at);
    CREATE INDEX IF NOT EXISTS idx_news_published ON news_articles(published_at);
    CREATE INDEX IF NOT EXISTS idx_runs_company ON scraping_runs(company_id);
    CREATE INDEX IF NOT EXISTS idx_runs_started ON scraping_runs(started_at);
"""


async def get_db() -> aiosqlite.Connection:
    db = await aiosqlite.connect(DB_PATH)
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    return db


async def create_schema(db: aiosqlite.Connection):
    await db.executescript(SCHEMA)
    await db.commit()


async def init_db():
    """Create tables on startup if they don't exist."""
    db = await get_db()
    try:
        await create_schema(db)
    finally:
        await db.close()
