"""Token accounting for research runs.

TokenTracker records metered usage per tool against a budget.
estimate_tokens() counts tokens with tiktoken for responses that carry
no usage information.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import lru_cache

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _encoding(name: str):
    import tiktoken

    return tiktoken.get_encoding(name)


def estimate_tokens(text: str, encoding_name: str = "o200k_base") -> int:
    """Count tokens in ``text`` with the given tiktoken encoding.

    Returns 0 for empty text.
    """
    if not text:
        return 0
    return len(_encoding(encoding_name).encode(text))


UsageListener = Callable[[str, int, int], None]
"""Called as ``listener(tool, tokens, total_usage)`` on every usage event."""


class TokenTracker:
    """Cumulative token usage counter with a per-tool breakdown.

    Usage only ever grows. Recording is thread-safe because URL fetches
    for a single visit step report their cost from worker threads.

    Usage::

        tracker = TokenTracker(budget=100_000)
        tracker.track_usage("agent", 1_234)
        tracker.get_total_usage()   # 1234
    """

    def __init__(self, budget: int | None = None) -> None:
        self.budget = budget
        self._usages: list[tuple[str, int]] = []
        self._listeners: list[UsageListener] = []
        self._lock = threading.Lock()

    def track_usage(self, tool: str, tokens: int) -> None:
        """Record ``tokens`` consumed by ``tool``.

        Negative counts are clamped to zero so the total never decreases.
        """
        tokens = max(0, int(tokens))
        with self._lock:
            self._usages.append((tool, tokens))
            total = sum(t for _, t in self._usages)
        if self.budget:
            logger.debug(
                "%s used %d tokens (%d / %d)", tool, tokens, total, self.budget
            )
        for listener in list(self._listeners):
            listener(tool, tokens, total)

    def get_total_usage(self) -> int:
        with self._lock:
            return sum(t for _, t in self._usages)

    def get_usage_breakdown(self) -> dict[str, int]:
        """Return total tokens per tool, in first-use order."""
        breakdown: dict[str, int] = {}
        with self._lock:
            for tool, tokens in self._usages:
                breakdown[tool] = breakdown.get(tool, 0) + tokens
        return breakdown

    @property
    def remaining(self) -> int | None:
        """Tokens left before the budget is reached, or None if unlimited."""
        if self.budget is None:
            return None
        return max(0, self.budget - self.get_total_usage())

    def budget_fraction(self) -> float:
        """Fraction of the budget consumed (0.0 when unlimited)."""
        if not self.budget:
            return 0.0
        return self.get_total_usage() / self.budget

    def add_listener(self, listener: UsageListener) -> None:
        self._listeners.append(listener)

    def summary(self) -> dict:
        return {
            "total_tokens": self.get_total_usage(),
            "budget": self.budget,
            "breakdown": self.get_usage_breakdown(),
        }
