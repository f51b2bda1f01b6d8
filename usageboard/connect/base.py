"""
Base classes for AI coding usage connectors.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Iterator, Optional

import httpx


class Platform(str, Enum):
    """Supported AI coding platforms."""
    CLAUDE = "claude"
    OPENAI = "openai"
    CURSOR = "cursor"

    @property
    def display_name(self) -> str:
        return PLATFORM_LABELS[self]


PLATFORM_LABELS = {
    Platform.CLAUDE: "Claude",
    Platform.OPENAI: "OpenAI",
    Platform.CURSOR: "Cursor",
}


@dataclass(frozen=True)
class NormalizedRecord:
    """Usage for one identity on one platform, collapsed over the window."""
    email: str
    platform: Platform
    requests: int
    input_tokens: int
    output_tokens: int
    cost_cents: int

    @property
    def tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class ProviderError(Exception):
    """A provider request failed or returned something unusable."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} {status_code}: {body}"
        super().__init__(message)


class MalformedResponseError(ProviderError):
    """A page came back with a success status but an unexpected shape."""


class BaseConnector(ABC):
    """Base class for all usage connectors."""

    platform: Platform
    BASE_URL: str = ""

    def __init__(
        self,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return self.platform.value

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        """Credential headers for every request."""
        pass

    @abstractmethod
    async def fetch_usage(
        self,
        window_start: date,
        window_end: Optional[date] = None,
    ) -> list[NormalizedRecord]:
        """Fetch usage for the window, one record per identity."""
        pass

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers=self._headers(),
            timeout=30.0,
            transport=self._transport,
        )

    async def _request_json(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> dict:
        """Issue one request and decode the JSON object it returns."""
        response = await client.request(method, url, **kwargs)

        if not response.is_success:
            raise ProviderError(
                self.provider_name,
                f"{self.platform.display_name} API error",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                self.provider_name,
                f"{self.platform.display_name} API returned invalid JSON: {e}",
            ) from e

        if not isinstance(payload, dict):
            raise MalformedResponseError(
                self.provider_name,
                f"{self.platform.display_name} API returned {type(payload).__name__}, expected object",
            )
        return payload

    @contextmanager
    def _parsing(self, what: str) -> Iterator[None]:
        """Report a payload of the wrong shape as MalformedResponseError."""
        try:
            yield
        except (AttributeError, TypeError, KeyError, ValueError) as e:
            raise MalformedResponseError(
                self.provider_name,
                f"{self.platform.display_name} API returned a malformed {what}: {e}",
            ) from e


async def gather_all(*aws: Awaitable) -> list:
    """
    Await every coroutine to completion, then raise the first failure.

    Unlike a plain gather, nothing is left running against a client the
    caller is about to close.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
