"""Sleuth exception hierarchy.

All Sleuth-specific exceptions inherit from SleuthError.
"""


class SleuthError(Exception):
    """Base exception for all Sleuth errors."""


class ConfigError(SleuthError):
    """Raised when required configuration (API keys, settings) is missing."""


class BudgetExceededError(SleuthError):
    """Raised when the next oracle call would push usage past the token budget."""

    def __init__(self, projected_tokens: int, budget: int) -> None:
        self.projected_tokens = projected_tokens
        self.budget = budget
        super().__init__(
            f"Token budget would be exceeded: {projected_tokens} > {budget}"
        )


class DecisionError(SleuthError):
    """Raised when an oracle response cannot be used.

    Covers malformed JSON, missing required fields, and actions that are
    outside the set permitted for the current step.
    """

    def __init__(self, message: str, raw: object = None) -> None:
        self.raw = raw
        super().__init__(message)


class AdapterError(SleuthError):
    """Base for failures of the external search/fetch adapters."""


class SearchError(AdapterError):
    """Raised when a keyword search fails."""

    def __init__(self, query: str, reason: str) -> None:
        self.query = query
        super().__init__(f"Search failed for {query!r}: {reason}")


class ReadError(AdapterError):
    """Raised when fetching the content of a URL fails."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Failed to read {url}: {reason}")
