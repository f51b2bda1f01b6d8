"""
Claude Connector - Anthropic Claude Code usage report.
"""

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Optional

import httpx

from usageboard.connect.base import BaseConnector, NormalizedRecord, Platform
from usageboard.connect.costs import CostMode, round_half_up
from usageboard.connect.pagination import CursorPagination, DailyWindowPagination


class ClaudeConnector(BaseConnector):
    """Claude Code usage per user, fetched one day at a time."""

    platform = Platform.CLAUDE
    cost_mode = CostMode.DIRECT

    BASE_URL = "https://api.anthropic.com"
    USAGE_PATH = "/v1/organizations/usage_report/claude_code"
    API_VERSION = "2023-06-01"
    PAGE_LIMIT = 1000

    def __init__(
        self,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        batch_size: int = 5,
    ):
        super().__init__(api_key, transport=transport)
        self.pagination = DailyWindowPagination(
            per_day=CursorPagination(
                items_field="data",
                has_more_field="has_more",
                next_field="next_page",
                provider=self.provider_name,
            ),
            batch_size=batch_size,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
        }

    async def fetch_usage(
        self,
        window_start: date,
        window_end: Optional[date] = None,
    ) -> list[NormalizedRecord]:
        """Fetch every day from window_start through window_end (default today, UTC)."""
        if window_end is None:
            window_end = datetime.now(timezone.utc).date()

        async with self._client() as client:
            async def fetch_page(day: date, cursor: Optional[str]) -> dict:
                params = {"starting_at": day.isoformat(), "limit": self.PAGE_LIMIT}
                if cursor:
                    params["page"] = cursor
                return await self._request_json(client, "GET", self.USAGE_PATH, params=params)

            entries = await self.pagination.collect(window_start, window_end, fetch_page)

        with self._parsing("usage report entry"):
            return self._normalize(entries)

    def _normalize(self, entries: list[dict]) -> list[NormalizedRecord]:
        """Collapse daily entries into one record per email."""
        totals = defaultdict(lambda: {
            "requests": 0,
            "input": 0,
            "output": 0,
            "cost": 0.0,
        })

        for entry in entries:
            email = self._email(entry)
            usage = totals[email]

            core = entry.get("core_metrics") or {}
            usage["requests"] += core.get("num_sessions", 0) or 0

            for model in entry.get("model_breakdown") or []:
                tokens = model.get("tokens") or {}
                usage["input"] += tokens.get("input", 0) or 0
                usage["output"] += tokens.get("output", 0) or 0

                cost = model.get("estimated_cost") or {}
                # amount is already in cents
                usage["cost"] += cost.get("amount", 0) or 0

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

    @staticmethod
    def _email(entry: dict) -> str:
        # API key actors carry a key name instead of an email; left unresolved
        actor = entry.get("actor") or {}
        return actor.get("email_address") or ""
