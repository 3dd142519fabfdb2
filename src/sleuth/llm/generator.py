"""Structured generation on top of an LLMClient.

ObjectGenerator sends one prompt with a JSON response schema, decodes the
returned object, meters its token cost on a TokenTracker, and falls back
to the role's fallback model when the primary model is rate limited or
not available.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sleuth.exceptions import DecisionError
from sleuth.llm.errors import LLMModelUnavailableError, LLMRateLimitError
from sleuth.tokens import estimate_tokens

if TYPE_CHECKING:
    from sleuth.config import ModelConfig
    from sleuth.llm.protocols import LLMClient
    from sleuth.tokens import TokenTracker

logger = logging.getLogger(__name__)

_FALLBACK_ERRORS = (LLMRateLimitError, LLMModelUnavailableError)


@dataclass(frozen=True)
class GenerateResult:
    """Decoded object plus the metered cost of producing it."""

    object: Any
    tokens: int
    model: str


def _response_format(schema: dict, name: str) -> dict:
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "schema": schema},
    }


def _decode_json(text: str) -> Any:
    """Decode a JSON object, tolerating surrounding prose or code fences."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                pass
    raise DecisionError(f"Response is not valid JSON: {text[:200]!r}", text)


class ObjectGenerator:
    """Prompt -> structured JSON object, with usage tracking and fallback.

    Usage::

        generator = ObjectGenerator(OpenAIClient())
        result = generator.generate(
            ModelConfig(model="gpt-4o"), schema, prompt,
            tool="evaluator", tracker=tracker,
        )
        result.object["is_definitive"]
    """

    def __init__(self, client: LLMClient) -> None:
        self._client = client

    @property
    def client(self) -> LLMClient:
        return self._client

    def generate(
        self,
        config: ModelConfig,
        schema: dict,
        prompt: str,
        *,
        tool: str,
        tracker: TokenTracker | None = None,
    ) -> GenerateResult:
        """Generate one JSON object conforming to ``schema``.

        Args:
            config: Model selection for the calling role.
            schema: JSON schema for the response object.
            prompt: Full user prompt.
            tool: Name under which usage is recorded.
            tracker: Optional tracker that receives the token cost.

        Raises:
            DecisionError: If the response is not a JSON object.
            LLMClientError: On transport failures (after client retries and
                the model fallback).
        """
        kwargs = {"response_format": _response_format(schema, tool)}
        response, model = self._chat_with_fallback(config, prompt, kwargs)
        content = self._client.extract_content(response)
        tokens = self._metered_tokens(response, prompt, content)
        if tracker is not None:
            tracker.track_usage(tool, tokens)
        obj = _decode_json(content)
        if not isinstance(obj, dict):
            raise DecisionError(f"Expected a JSON object from {tool}, got {type(obj).__name__}", obj)
        return GenerateResult(object=obj, tokens=tokens, model=model)

    def generate_text(
        self,
        config: ModelConfig,
        prompt: str,
        *,
        tool: str,
        tracker: TokenTracker | None = None,
    ) -> str:
        """Generate free text (no response schema)."""
        response, _model = self._chat_with_fallback(config, prompt, {})
        content = self._client.extract_content(response)
        if tracker is not None:
            tracker.track_usage(tool, self._metered_tokens(response, prompt, content))
        return content

    def _chat_with_fallback(
        self,
        config: ModelConfig,
        prompt: str,
        kwargs: dict,
    ) -> tuple[dict, str]:
        messages = [{"role": "user", "content": prompt}]
        try:
            response = self._client.chat(
                messages,
                model=config.model,
                temperature=config.temperature,
                **kwargs,
            )
            return response, config.model
        except _FALLBACK_ERRORS as exc:
            fallback = config.fallback_model
            if not fallback or fallback == config.model:
                raise
            logger.warning(
                "Failed to use %s (%s), falling back to %s",
                config.model,
                exc,
                fallback,
            )
            response = self._client.chat(
                messages,
                model=fallback,
                temperature=config.temperature,
                **kwargs,
            )
            return response, fallback

    def _metered_tokens(self, response: dict, prompt: str, content: str) -> int:
        usage = self._client.extract_usage(response) or {}
        total = usage.get("total_tokens")
        if isinstance(total, int):
            return total
        return estimate_tokens(prompt) + estimate_tokens(content)
