"""Keyword search adapters.

Both providers implement the SearchProvider protocol and return an
ordered list of SearchResult. Failures raise SearchError after the
provider's own retry policy is exhausted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx
import tenacity

from sleuth.exceptions import SearchError
from sleuth.models import SearchResult

if TYPE_CHECKING:
    from sleuth.config import Settings

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


@runtime_checkable
class SearchProvider(Protocol):
    """Keyword string in, ordered (title, url, description) results out."""

    def search(self, query: str) -> list[SearchResult]:
        ...


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout))


class BraveSearch:
    """Brave Web Search API client.

    Usage::

        brave = BraveSearch(api_key="...")
        results = brave.search("python 3.13 release date")
    """

    BASE_URL = "https://api.search.brave.com/res/v1/web/search"

    def __init__(
        self,
        api_key: str,
        *,
        count: int = 10,
        timeout: float = 15.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._count = count
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": api_key,
            },
        )

    def search(self, query: str) -> list[SearchResult]:
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=tenacity.wait_exponential(multiplier=1, min=1, max=10),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            data = retryer(self._do_search, query)
        except (httpx.HTTPError, ValueError) as exc:
            raise SearchError(query, str(exc)) from exc

        raw = (data.get("web") or {}).get("results") or data.get("results") or []
        return [
            SearchResult(
                title=r.get("title", ""),
                url=r["url"],
                description=r.get("description", ""),
            )
            for r in raw
            if isinstance(r, dict) and r.get("url")
        ]

    def _do_search(self, query: str) -> dict:
        response = self._client.get(
            self.BASE_URL,
            params={"q": query, "count": self._count},
        )
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._client.close()


class DuckDuckGoSearch:
    """DuckDuckGo text search through the ``ddgs`` library (strict safe search)."""

    def __init__(
        self,
        *,
        max_results: int = 10,
        safesearch: str = "on",
        timeout: int = 20,
        proxy: str | None = None,
    ) -> None:
        self._max_results = max_results
        self._safesearch = safesearch
        self._timeout = timeout
        self._proxy = proxy

    def search(self, query: str) -> list[SearchResult]:
        from ddgs import DDGS
        from ddgs.exceptions import DDGSException

        try:
            with DDGS(proxy=self._proxy, timeout=self._timeout) as client:
                rows = client.text(
                    query,
                    safesearch=self._safesearch,
                    max_results=self._max_results,
                )
        except DDGSException as exc:
            raise SearchError(query, str(exc)) from exc

        return [
            SearchResult(
                title=row.get("title", ""),
                url=row["href"],
                description=row.get("body", ""),
            )
            for row in rows or []
            if row.get("href")
        ]


def build_search_provider(settings: Settings) -> SearchProvider:
    """Pick Brave when an API key is configured, DuckDuckGo otherwise."""
    if settings.search_provider == "brave":
        return BraveSearch(settings.brave_api_key)
    return DuckDuckGoSearch()
