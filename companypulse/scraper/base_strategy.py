"""Abstract base strategy for source fetchers.

Each upstream source gets its own concrete strategy class implementing
fetch(). The base class provides shared config access.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from companypulse.api.schemas import ExternalRecord


class BaseFetchStrategy(ABC):
    """Abstract base class for all fetch strategies."""

    def __init__(self, config: dict, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.source_name = config.get("source", "unknown")
        self.transport = transport

    @abstractmethod
    async def fetch(self, identifier: str) -> List[ExternalRecord]:
        """Fetch the current records for one company on this source.

        identifier is the source-specific handle (e.g. an Ashby board name).
        """
        ...

    def get_timeout(self) -> float:
        return self.config.get("timeout_seconds", 30.0)

    def get_headers(self) -> dict:
        """Get request headers from config."""
        return self.config.get("request_headers", {})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.get_timeout(), transport=self.transport)
