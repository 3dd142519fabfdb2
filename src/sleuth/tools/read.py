"""URL content fetching through the Jina Reader API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx
import tenacity

from sleuth.exceptions import ReadError
from sleuth.models import ReadResponse

if TYPE_CHECKING:
    from sleuth.tokens import TokenTracker

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


@runtime_checkable
class Reader(Protocol):
    """URL in, extracted content out; usage is reported to the tracker."""

    def read_url(self, url: str, tracker: TokenTracker | None = None) -> ReadResponse:
        ...


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


class JinaReader:
    """Fetches a URL as clean text via ``r.jina.ai``.

    The reader reports its own token cost (``data.usage.tokens``), which is
    recorded under the ``read`` tool.
    """

    BASE_URL = "https://r.jina.ai/"

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 60.0,
        max_retries: int = 2,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "X-Retain-Images": "none",
            },
        )

    def read_url(self, url: str, tracker: TokenTracker | None = None) -> ReadResponse:
        """Fetch ``url`` and return its extracted content.

        Raises:
            ReadError: On HTTP failure or an unexpected payload.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=tenacity.wait_exponential(multiplier=1, min=1, max=10),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            payload = retryer(self._do_read, url)
        except (httpx.HTTPError, ValueError) as exc:
            raise ReadError(url, str(exc)) from exc

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ReadError(url, f"unexpected response: {payload!r:.200}")

        tokens = (data.get("usage") or {}).get("tokens", 0)
        if tracker is not None:
            tracker.track_usage("read", tokens)
        logger.info("Read %s (%s tokens)", url, tokens)
        return ReadResponse(
            url=data.get("url") or url,
            title=data.get("title") or "",
            content=data.get("content") or "",
        )

    def _do_read(self, url: str) -> dict:
        response = self._client.post(self.BASE_URL, json={"url": url})
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._client.close()
