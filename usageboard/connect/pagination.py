"""
Pagination strategies used by the connectors.

Each vendor pages its reporting API differently, so there are three small
strategies instead of one generic loop:

- CursorPagination: the response says whether more pages exist and hands
  back an opaque token for the next request.
- PageNumberPagination: the caller walks a 1-based page counter until a
  short page comes back.
- DailyWindowPagination: the date range is split into UTC calendar days and
  each day is cursor-paginated on its own, a few days at a time.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Awaitable, Callable, Optional

from usageboard.connect.base import MalformedResponseError, gather_all

CursorPageFetcher = Callable[[Optional[str]], Awaitable[dict]]
NumberedPageFetcher = Callable[[int, int], Awaitable[dict]]
DayPageFetcher = Callable[[date, Optional[str]], Awaitable[dict]]


def _items(payload: dict, items_field: str, provider: str) -> list:
    items = payload.get(items_field)
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedResponseError(
            provider,
            f"expected a list in '{items_field}', got {type(items).__name__}",
        )
    return items


@dataclass
class CursorPagination:
    """Follow an opaque next-page token while the response says there is more."""
    items_field: str = "data"
    has_more_field: str = "has_more"
    next_field: str = "next_page"
    provider: str = "unknown"

    async def collect(self, fetch_page: CursorPageFetcher) -> list:
        items = []
        token: Optional[str] = None

        while True:
            payload = await fetch_page(token)
            items.extend(_items(payload, self.items_field, self.provider))

            token = payload.get(self.next_field) if payload.get(self.has_more_field) else None
            if not token:
                return items


@dataclass
class PageNumberPagination:
    """Increment a 1-based page number until a page has fewer than page_size items."""
    page_size: int = 100
    items_field: str = "data"
    provider: str = "unknown"

    async def collect(self, fetch_page: NumberedPageFetcher) -> list:
        items = []
        page = 1

        while True:
            payload = await fetch_page(page, self.page_size)
            page_items = _items(payload, self.items_field, self.provider)
            items.extend(page_items)

            if len(page_items) < self.page_size:
                return items
            page += 1


def days_between(start: date, end: date) -> list[date]:
    """Calendar days from start to end, both inclusive."""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


@dataclass
class DailyWindowPagination:
    """
    Paginate each calendar day separately.

    Days run in batches of batch_size concurrent requests; batches run one
    after another. A failure on any day propagates and aborts the fetch.
    """
    per_day: CursorPagination = field(default_factory=CursorPagination)
    batch_size: int = 5

    async def collect(self, start: date, end: date, fetch_page: DayPageFetcher) -> list:
        days = days_between(start, end)
        items = []

        for i in range(0, len(days), self.batch_size):
            batch = days[i:i + self.batch_size]
            results = await gather_all(
                *(self._collect_day(day, fetch_page) for day in batch)
            )
            for day_items in results:
                items.extend(day_items)

        return items

    async def _collect_day(self, day: date, fetch_page: DayPageFetcher) -> list:
        async def fetch(token: Optional[str]) -> dict:
            return await fetch_page(day, token)

        return await self.per_day.collect(fetch)
