"""
OpenAI Connector - Organization usage, costs and user directory.
"""

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import httpx

from usageboard.connect.base import (
    BaseConnector,
    NormalizedRecord,
    Platform,
    ProviderError,
    gather_all,
)
from usageboard.connect.costs import (
    CostMode,
    allocate_proportional,
    to_cents,
    unavailable_costs,
)
from usageboard.connect.pagination import CursorPagination
from usageboard.console import warn


def _unix(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


class OpenAIConnector(BaseConnector):
    """
    OpenAI organization connector.

    Completions usage is grouped by user_id, but the costs endpoint cannot be
    grouped by user, so per-user cost is estimated from the organization
    total (see CostMode.PROPORTIONAL). Emails come from the organization user
    directory when it can be read.
    """

    platform = Platform.OPENAI

    BASE_URL = "https://api.openai.com"
    USAGE_PATH = "/v1/organization/usage/completions"
    COSTS_PATH = "/v1/organization/costs"
    USERS_PATH = "/v1/organization/users"

    def __init__(
        self,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cost_mode: CostMode = CostMode.PROPORTIONAL,
    ):
        super().__init__(api_key, transport=transport)
        if cost_mode == CostMode.DIRECT:
            raise ValueError("OpenAI costs cannot be grouped by user")
        self.cost_mode = cost_mode
        self.page_pagination = CursorPagination(
            items_field="data",
            has_more_field="has_more",
            next_field="next_page",
            provider=self.provider_name,
        )
        self.directory_pagination = CursorPagination(
            items_field="data",
            has_more_field="has_more",
            next_field="last_id",
            provider=self.provider_name,
        )

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def fetch_usage(
        self,
        window_start: date,
        window_end: Optional[date] = None,
    ) -> list[NormalizedRecord]:
        params = {"start_time": _unix(window_start), "bucket_width": "1d"}
        if window_end is not None:
            params["end_time"] = _unix(window_end + timedelta(days=1))

        async with self._client() as client:
            usage_task = self._fetch_usage_buckets(client, params)
            directory_task = self._fetch_directory(client)

            if self.cost_mode == CostMode.PROPORTIONAL:
                buckets, directory, total_cost_cents = await gather_all(
                    usage_task,
                    directory_task,
                    self._fetch_total_cost(client, params),
                )
            else:
                buckets, directory = await gather_all(usage_task, directory_task)
                total_cost_cents = 0

        with self._parsing("usage bucket"):
            usage = self._usage_by_user(buckets)
        tokens_by_user = {
            user_id: u["input"] + u["output"] for user_id, u in usage.items()
        }

        if self.cost_mode == CostMode.PROPORTIONAL:
            costs = allocate_proportional(total_cost_cents, tokens_by_user)
        else:
            costs = unavailable_costs(usage)

        return [
            NormalizedRecord(
                email=directory.get(user_id, user_id),
                platform=self.platform,
                requests=u["requests"],
                input_tokens=u["input"],
                output_tokens=u["output"],
                cost_cents=costs[user_id],
            )
            for user_id, u in usage.items()
        ]

    async def _fetch_usage_buckets(self, client: httpx.AsyncClient, params: dict) -> list[dict]:
        async def fetch_page(token: Optional[str]) -> dict:
            page_params = {**params, "group_by": "user_id", "limit": 31}
            if token:
                page_params["page"] = token
            return await self._request_json(client, "GET", self.USAGE_PATH, params=page_params)

        return await self.page_pagination.collect(fetch_page)

    async def _fetch_total_cost(self, client: httpx.AsyncClient, params: dict) -> int:
        """Organization-wide cost for the window, in cents."""
        async def fetch_page(token: Optional[str]) -> dict:
            page_params = {**params, "limit": 180}
            if token:
                page_params["page"] = token
            return await self._request_json(client, "GET", self.COSTS_PATH, params=page_params)

        buckets = await self.page_pagination.collect(fetch_page)

        total_usd = 0.0
        with self._parsing("cost bucket"):
            for bucket in buckets:
                for result in bucket.get("results") or []:
                    amount = result.get("amount") or {}
                    total_usd += float(amount.get("value", 0) or 0)
        return to_cents(total_usd)

    async def _fetch_directory(self, client: httpx.AsyncClient) -> dict[str, str]:
        """Map user id to email. Failures only cost us the emails."""
        async def fetch_page(after: Optional[str]) -> dict:
            page_params = {"limit": 100}
            if after:
                page_params["after"] = after
            return await self._request_json(client, "GET", self.USERS_PATH, params=page_params)

        try:
            users = await self.directory_pagination.collect(fetch_page)
            with self._parsing("user directory"):
                return {
                    user["id"]: user["email"]
                    for user in users
                    if user.get("id") and user.get("email")
                }
        except (ProviderError, httpx.HTTPError) as e:
            warn(f"OpenAI user directory unavailable, showing user ids instead: {e}")
            return {}

    @staticmethod
    def _usage_by_user(buckets: list[dict]) -> dict[str, dict]:
        usage = defaultdict(lambda: {"requests": 0, "input": 0, "output": 0})

        for bucket in buckets:
            for result in bucket.get("results") or []:
                user_id = result.get("user_id")
                if not user_id:
                    # Not attributed to a user (e.g. service account traffic)
                    continue
                u = usage[user_id]
                u["requests"] += result.get("num_model_requests", 0) or 0
                u["input"] += result.get("input_tokens", 0) or 0
                u["output"] += result.get("output_tokens", 0) or 0

        return dict(usage)
