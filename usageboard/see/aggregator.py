"""
Usage Aggregator - Unified view across all platforms.
"""

import asyncio
from datetime import date
from typing import Optional

import httpx

from usageboard.connect.base import BaseConnector, NormalizedRecord, ProviderError
from usageboard.console import warn
from usageboard.see.identity import merge_by_email
from usageboard.see.models import MergedUser


class UsageAggregator:
    """Fetches usage from every connector at once and merges the results."""

    def __init__(self):
        self.connectors: list[BaseConnector] = []

    def add_connector(self, connector: BaseConnector) -> None:
        """Add a platform connector."""
        self.connectors.append(connector)

    def add_connectors(self, connectors: list[BaseConnector]) -> None:
        """Add multiple connectors."""
        self.connectors.extend(connectors)

    async def fetch_all(
        self,
        window_start: date,
        window_end: Optional[date] = None,
    ) -> list[NormalizedRecord]:
        """Get all records across all connectors. A failed connector contributes nothing."""
        results = await asyncio.gather(
            *(self._fetch_one(c, window_start, window_end) for c in self.connectors)
        )
        return [record for records in results for record in records]

    async def _fetch_one(
        self,
        connector: BaseConnector,
        window_start: date,
        window_end: Optional[date],
    ) -> list[NormalizedRecord]:
        try:
            return await connector.fetch_usage(window_start, window_end)
        except (ProviderError, httpx.HTTPError) as e:
            warn(f"{connector.platform.display_name} fetch failed: {e}")
            return []

    async def collect(
        self,
        window_start: date,
        window_end: Optional[date] = None,
    ) -> list[MergedUser]:
        records = await self.fetch_all(window_start, window_end)
        return merge_by_email(records)
