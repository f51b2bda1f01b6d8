"""
Tests for UsageAggregator.
"""

import asyncio
from datetime import date

import httpx
import pytest

from usageboard.connect import CursorConnector, OpenAIConnector
from usageboard.connect.base import BaseConnector, NormalizedRecord, Platform, ProviderError
from usageboard.see import UsageAggregator


class FakeConnector(BaseConnector):
    """Connector that returns canned records or raises."""

    def __init__(self, platform, records=None, error=None, delay=0.0):
        super().__init__("test-key")
        self.platform = platform
        self.records = records or []
        self.error = error
        self.delay = delay
        self.calls = []

    def _headers(self):
        return {}

    async def fetch_usage(self, window_start, window_end=None):
        self.calls.append((window_start, window_end))
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.records


def record(email, platform, requests=1):
    return NormalizedRecord(email, platform, requests, 10, 10, 5)


class TestUsageAggregator:
    """Tests for UsageAggregator."""

    def test_empty_aggregator(self):
        aggregator = UsageAggregator()
        assert asyncio.run(aggregator.fetch_all(date(2025, 1, 1))) == []

    def test_flattens_all_connectors(self):
        aggregator = UsageAggregator()
        aggregator.add_connectors([
            FakeConnector(Platform.CLAUDE, [record("a@x.com", Platform.CLAUDE)]),
            FakeConnector(Platform.CURSOR, [
                record("b@x.com", Platform.CURSOR),
                record("A@x.com", Platform.CURSOR),
            ]),
        ])

        records = asyncio.run(aggregator.fetch_all(date(2025, 1, 1), date(2025, 1, 31)))

        assert len(records) == 3
        for connector in aggregator.connectors:
            assert connector.calls == [(date(2025, 1, 1), date(2025, 1, 31))]

    def test_failed_provider_is_isolated(self, capsys):
        aggregator = UsageAggregator()
        aggregator.add_connector(FakeConnector(
            Platform.OPENAI,
            error=ProviderError("openai", "OpenAI API error", status_code=500, body="boom"),
        ))
        aggregator.add_connector(FakeConnector(
            Platform.CLAUDE,
            error=httpx.ConnectError("connection refused"),
        ))
        aggregator.add_connector(FakeConnector(Platform.CURSOR, [record("c@x.com", Platform.CURSOR)]))

        users = asyncio.run(aggregator.collect(date(2025, 1, 1)))

        assert [u.email for u in users] == ["c@x.com"]
        err = capsys.readouterr().err
        assert "OpenAI fetch failed" in err
        assert "Claude fetch failed" in err

    def test_malformed_cursor_response_is_isolated(self, capsys):
        def handler(request):
            return httpx.Response(200, json={"usageEvents": ["not-an-object"]})

        aggregator = UsageAggregator()
        aggregator.add_connectors([
            FakeConnector(Platform.CLAUDE, [record("a@x.com", Platform.CLAUDE)]),
            CursorConnector("cur-key", transport=httpx.MockTransport(handler)),
        ])

        records = asyncio.run(aggregator.fetch_all(date(2025, 1, 1), date(2025, 1, 2)))

        assert [r.email for r in records] == ["a@x.com"]
        assert "Cursor fetch failed" in capsys.readouterr().err

    def test_wrongly_typed_openai_usage_is_isolated(self, capsys):
        def handler(request):
            if request.url.path.endswith("/completions"):
                return httpx.Response(200, json={
                    "data": [{"results": [{"user_id": "user_1", "num_model_requests": "7"}]}],
                    "has_more": False,
                })
            return httpx.Response(200, json={"data": [], "has_more": False})

        aggregator = UsageAggregator()
        aggregator.add_connectors([
            OpenAIConnector("sk-admin", transport=httpx.MockTransport(handler)),
            FakeConnector(Platform.CURSOR, [record("c@x.com", Platform.CURSOR)]),
        ])

        users = asyncio.run(aggregator.collect(date(2025, 1, 1)))

        assert [u.email for u in users] == ["c@x.com"]
        assert "OpenAI fetch failed" in capsys.readouterr().err

    def test_unexpected_error_propagates(self):
        aggregator = UsageAggregator()
        aggregator.add_connector(FakeConnector(Platform.CLAUDE, error=RuntimeError("bug")))

        with pytest.raises(RuntimeError):
            asyncio.run(aggregator.fetch_all(date(2025, 1, 1)))

    def test_collect_merges_across_platforms(self):
        aggregator = UsageAggregator()
        aggregator.add_connectors([
            FakeConnector(Platform.CLAUDE, [record("Dev@x.com", Platform.CLAUDE, 2)]),
            FakeConnector(Platform.OPENAI, [record("dev@x.com", Platform.OPENAI, 3)]),
        ])

        users = asyncio.run(aggregator.collect(date(2025, 1, 1)))

        assert len(users) == 1
        assert users[0].requests == 5
        assert users[0].platforms == {Platform.CLAUDE, Platform.OPENAI}

    def test_connectors_run_concurrently(self):
        aggregator = UsageAggregator()
        aggregator.add_connectors([
            FakeConnector(Platform.CLAUDE, delay=0.2),
            FakeConnector(Platform.OPENAI, delay=0.2),
            FakeConnector(Platform.CURSOR, delay=0.2),
        ])

        async def timed():
            loop = asyncio.get_running_loop()
            start = loop.time()
            await aggregator.fetch_all(date(2025, 1, 1))
            return loop.time() - start

        assert asyncio.run(timed()) < 0.5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
