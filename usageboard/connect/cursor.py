"""
Cursor Connector - Cursor team usage events.
"""

import base64
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import httpx

from usageboard.connect.base import BaseConnector, NormalizedRecord, Platform
from usageboard.connect.costs import CostMode, round_half_up
from usageboard.connect.pagination import PageNumberPagination

# Cursor only keeps usage events for this many days
CURSOR_MAX_LOOKBACK_DAYS = 90


def _epoch_ms(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp() * 1000)


class CursorConnector(BaseConnector):
    """Cursor team admin API connector."""

    platform = Platform.CURSOR
    cost_mode = CostMode.DIRECT

    BASE_URL = "https://api.cursor.com"
    EVENTS_PATH = "/teams/filtered-usage-events"

    def __init__(
        self,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        page_size: int = 100,
    ):
        super().__init__(api_key, transport=transport)
        self.pagination = PageNumberPagination(
            page_size=page_size,
            items_field="usageEvents",
            provider=self.provider_name,
        )

    def _headers(self) -> dict[str, str]:
        token = base64.b64encode(f"{self.api_key}:".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    @staticmethod
    def clamp_window(window_start: date, window_end: date) -> date:
        """Move window_start forward so the window fits Cursor's retention."""
        earliest = window_end - timedelta(days=CURSOR_MAX_LOOKBACK_DAYS)
        return max(window_start, earliest)

    async def fetch_usage(
        self,
        window_start: date,
        window_end: Optional[date] = None,
    ) -> list[NormalizedRecord]:
        if window_end is None:
            window_end = datetime.now(timezone.utc).date()
        window_start = self.clamp_window(window_start, window_end)

        body = {
            "startDate": _epoch_ms(window_start),
            "endDate": _epoch_ms(window_end + timedelta(days=1)),
        }

        async with self._client() as client:
            async def fetch_page(page: int, page_size: int) -> dict:
                return await self._request_json(
                    client,
                    "POST",
                    self.EVENTS_PATH,
                    json={**body, "page": page, "pageSize": page_size},
                )

            events = await self.pagination.collect(fetch_page)

        with self._parsing("usage event"):
            return self._normalize(events)

    def _normalize(self, events: list[dict]) -> list[NormalizedRecord]:
        """Count each event as one request and collapse per email."""
        totals = defaultdict(lambda: {
            "requests": 0,
            "input": 0,
            "output": 0,
            "cost": 0.0,
        })

        for event in events:
            usage = totals[event.get("userEmail") or ""]
            usage["requests"] += 1

            # Events without token usage (e.g. included requests) carry no cost
            token_usage = event.get("tokenUsage") or {}
            usage["input"] += token_usage.get("inputTokens", 0) or 0
            usage["output"] += token_usage.get("outputTokens", 0) or 0
            usage["cost"] += token_usage.get("totalCents", 0) or 0

        return [
            NormalizedRecord(
                email=email,
                platform=self.platform,
                requests=usage["requests"],
                input_tokens=usage["input"],
                output_tokens=usage["output"],
                cost_cents=round_half_up(usage["cost"]),
            )
            for email, usage in totals.items()
        ]
