"""LLM client protocol.

Any object with chat() and close() methods matching this signature can
back the research agent. The built-in OpenAIClient implements it.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for pluggable LLM clients.

    Custom clients can override ``extract_content()`` and ``extract_usage()``
    to support non-OpenAI response formats.  The defaults assume OpenAI-style
    responses (``choices[0].message.content`` and ``.usage``).
    """

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """Send messages, return response dict."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...

    def extract_content(self, response: dict) -> str:
        """Extract assistant message content from an LLM response."""
        try:
            return response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(
                f"Cannot extract content from response: {exc}. "
                f"Override extract_content() for custom formats."
            ) from exc

    def extract_usage(self, response: dict) -> dict | None:
        """Extract usage dict from an LLM response."""
        return response.get("usage")
