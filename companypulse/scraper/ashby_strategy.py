"""Ashby fetch strategy.

Fetches a company's open postings from the public Ashby posting API,
compensation included, and maps them onto ExternalRecord.
"""

import logging
from typing import List

from companypulse.api.schemas import ExternalRecord
from companypulse.scraper.base_strategy import BaseFetchStrategy

logger = logging.getLogger(__name__)


class AshbyStrategy(BaseFetchStrategy):
    """Concrete strategy for Ashby job boards."""

    def jobs_url(self, board_name: str) -> str:
        base_url = self.config.get("base_url", "https://api.ashbyhq.com/posting-api/job-board")
        return f"{base_url}/{board_name}?includeCompensation=true"

    def posting_url(self, board_name: str, job_id: str) -> str:
        board_url = self.config.get("board_url", "https://jobs.ashbyhq.com")
        return f"{board_url}/{board_name}/{job_id}"

    async def fetch(self, identifier: str) -> List[ExternalRecord]:
        url = self.jobs_url(identifier)

        async with self.client() as client:
            logger.info("Fetching from Ashby: %s", url)
            response = await client.get(url, headers=self.get_headers())
            response.raise_for_status()
            data = response.json()

        records = []
        for item in data.get("jobs") or []:
            if not isinstance(item, dict):
                continue
            ext_id = item.get("id")
            records.append(ExternalRecord(
                external_id=str(ext_id) if ext_id else None,
                title=item.get("title"),
                location=item.get("location"),
                description_plain=item.get("descriptionPlain"),
                description_html=item.get("descriptionHtml"),
                department=item.get("department"),
                team=item.get("team"),
                employment_type=item.get("employmentType"),
                is_remote=item.get("isRemote"),
                url=item.get("jobUrl") or (self.posting_url(identifier, ext_id) if ext_id else None),
                apply_url=item.get("applyUrl"),
                published_at=item.get("publishedAt"),
                compensation=item.get("compensation"),
                secondary_locations=item.get("secondaryLocations"),
            ))

        logger.info("Ashby: fetched %d postings for board %s", len(records), identifier)
        return records
