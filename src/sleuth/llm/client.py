"""OpenAI-compatible chat completions over httpx, retried with tenacity.

Every oracle call of the research loop (decisions, evaluation, dedup,
query rewriting, failure analysis, translation) goes through
:class:`OpenAIClient`.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
import tenacity

from sleuth.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMModelUnavailableError,
    LLMRateLimitError,
    LLMResponseError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}


def _is_retryable(exc: BaseException) -> bool:
    # Auth failures and unknown models are final; the generator handles
    # the latter by switching to the fallback model.
    if isinstance(exc, (LLMAuthError, LLMModelUnavailableError)):
        return False
    if isinstance(exc, LLMRateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


def _retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _check_status(response: httpx.Response, model: str) -> None:
    """Map provider status codes onto the LLM error hierarchy."""
    status = response.status_code
    if status in _AUTH_ERROR_STATUS_CODES:
        raise LLMAuthError(f"Authentication failed: HTTP {status} - {response.text}")
    if status == 404:
        raise LLMModelUnavailableError(model, f"Model not available: {model} - {response.text}")
    if status == 429:
        raise LLMRateLimitError(
            f"Rate limited: HTTP 429 - {response.text}",
            retry_after=_retry_after(response),
        )
    response.raise_for_status()


class OpenAIClient:
    """Sync client for an OpenAI-compatible ``/chat/completions`` endpoint.

    Transient failures (429, 5xx, connection errors) are retried with
    exponential backoff; 401/403 and 404 fail on the first attempt.

    Usage::

        with OpenAIClient(api_key="sk-...") as client:
            response = client.chat(
                [{"role": "user", "content": "Hello"}],
                response_format={"type": "json_object"},
            )
            text = OpenAIClient.extract_content(response)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "gpt-4o-mini",
        timeout: float = 120.0,
        max_retries: int = 3,
    ) -> None:
        """
        Args:
            api_key: Falls back to SLEUTH_OPENAI_API_KEY.
            base_url: Falls back to SLEUTH_OPENAI_BASE_URL, then the OpenAI API.
            max_retries: Total attempts for retryable errors.

        Raises:
            LLMConfigError: If no API key is available.
        """
        self._api_key = api_key or os.environ.get("SLEUTH_OPENAI_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Pass api_key= or set SLEUTH_OPENAI_API_KEY "
                "environment variable."
            )
        base_url = base_url or os.environ.get("SLEUTH_OPENAI_BASE_URL") or DEFAULT_BASE_URL
        self._base_url = base_url.rstrip("/")
        self._default_model = default_model
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )

    def _retrying(self) -> tenacity.Retrying:
        return tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=tenacity.wait_exponential(multiplier=1, min=1, max=30) + tenacity.wait_random(0, 2),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """Return the raw completion dict; extra kwargs go into the payload."""
        model_name = model or self._default_model
        payload: dict[str, Any] = {"model": model_name, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        payload.update(kwargs)
        return self._retrying()(self._post, payload, model_name)

    def _post(self, payload: dict[str, Any], model: str) -> dict:
        response = self._client.post(f"{self._base_url}/chat/completions", json=payload)
        _check_status(response, model)
        data = response.json()
        if "choices" not in data:
            raise LLMResponseError(f"Unexpected response format: missing 'choices' key. Response: {data}")
        return data

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @staticmethod
    def extract_content(response: dict) -> str:
        """Assistant message text of the first choice ("" when null)."""
        try:
            return response["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMResponseError(
                f"Cannot extract content from response: {exc}. Response: {response}"
            ) from exc

    @staticmethod
    def extract_usage(response: dict) -> dict | None:
        return response.get("usage")
