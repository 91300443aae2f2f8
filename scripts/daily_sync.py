"""Standalone daily sync script for scheduled runs.

Runs the full pipeline (fetch → normalize → fingerprint → plan → execute →
record run) for every company registered on each fetchable source, then
exits non-zero if any pair failed.

Set COMPANYPULSE_SKIP_EMPTY_FETCH=1 to treat an empty fetch as a transient
failure and leave stored rows untouched for that pair.
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

from companypulse.db.companies import list_companies
from companypulse.db.database import get_db, create_schema
from companypulse.db.store import SQLiteRecordStore
from companypulse.pipeline.reconcile import sync_source
from companypulse.scraper.strategy_factory import (
    IDENTIFIER_FIELDS, create_strategy, identifier_for,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("daily_sync")

SOURCES = ["ashby"]
SKIP_EMPTY_FETCH = os.environ.get("COMPANYPULSE_SKIP_EMPTY_FETCH", "").lower() in ("1", "true", "yes")


async def run_sync():
    results = {}
    db = await get_db()
    try:
        await create_schema(db)
        store = SQLiteRecordStore(db)
        companies = await list_companies(db)

        for source_name in SOURCES:
            strategy = create_strategy(source_name)
            field = IDENTIFIER_FIELDS[source_name]

            for company in companies:
                if not getattr(company, field, None):
                    continue
                key = f"{company.slug}/{source_name}"
                identifier = identifier_for(source_name, company)
                try:
                    counts = await sync_source(
                        store,
                        company.id,
                        source_name,
                        lambda: strategy.fetch(identifier),
                        skip_empty=SKIP_EMPTY_FETCH,
                    )
                    if counts is None:
                        results[key] = {"status": "skipped"}
                    else:
                        results[key] = {"status": "completed", **counts.model_dump()}
                    logger.info("%s: %s", key, results[key])
                except Exception as e:
                    logger.error("%s: failed: %s", key, e)
                    results[key] = {"status": "failed", "error": str(e)}
    finally:
        await db.close()

    return results


def main():
    logger.info("Starting daily sync for sources: %s", SOURCES)
    results = asyncio.run(run_sync())
    logger.info("Sync complete: %s", results)

    failed = [k for k, r in results.items() if r["status"] == "failed"]
    if failed:
        logger.error("Failed pairs: %s", failed)
        sys.exit(1)


if __name__ == "__main__":
    main()
