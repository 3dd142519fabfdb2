"""LLM client infrastructure for Sleuth.

Provides an OpenAI-compatible HTTP client, the pluggable LLMClient
protocol, and the ObjectGenerator used by every oracle-backed component.
"""

from sleuth.llm.client import OpenAIClient
from sleuth.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMModelUnavailableError,
    LLMRateLimitError,
    LLMResponseError,
)
from sleuth.llm.generator import GenerateResult, ObjectGenerator
from sleuth.llm.protocols import LLMClient

__all__ = [
    "OpenAIClient",
    "LLMClient",
    "ObjectGenerator",
    "GenerateResult",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMModelUnavailableError",
    "LLMResponseError",
]
