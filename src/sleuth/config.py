"""Configuration types for Sleuth.

ModelConfig holds the model, temperature and fallback model for one
LLM-backed role. ToolConfigs groups one ModelConfig per role.
AgentConfig controls the research loop (budget, retry ceiling, pacing).
Settings collects API credentials from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Literal

from sleuth.exceptions import ConfigError

if TYPE_CHECKING:
    from sleuth.models import StepRecord

DEFAULT_MODEL = "gpt-4o-mini"
REASONING_MODEL = "gpt-4o"
FALLBACK_MODEL = "gpt-4o-mini"

SearchProviderName = Literal["brave", "duck"]


@dataclass(frozen=True)
class ModelConfig:
    """Model selection for a single LLM-backed role.

    Attributes:
        model: Primary model identifier.
        temperature: Sampling temperature.
        fallback_model: Model used when the primary one is rate limited
            or unavailable. None disables the fallback.
    """

    model: str = DEFAULT_MODEL
    temperature: float = 0.0
    fallback_model: str | None = FALLBACK_MODEL


@dataclass(frozen=True)
class ToolConfigs:
    """One ModelConfig per LLM-backed role."""

    dedup: ModelConfig = ModelConfig(temperature=0.1)
    evaluator: ModelConfig = ModelConfig(model=REASONING_MODEL, temperature=0.0)
    error_analyzer: ModelConfig = ModelConfig()
    query_rewriter: ModelConfig = ModelConfig(temperature=0.1)
    agent: ModelConfig = ModelConfig(model=REASONING_MODEL, temperature=0.7)
    agent_beast_mode: ModelConfig = ModelConfig(model=REASONING_MODEL, temperature=0.7)
    translator: ModelConfig = ModelConfig()


@dataclass
class AgentConfig:
    """Configuration for the research loop.

    Mutable dataclass -- callers may adjust settings between runs.

    Attributes:
        token_budget: Ceiling on cumulative token usage for a run.
        max_bad_attempts: Number of rejected answers to the original
            question tolerated before the run is forced to stop.
        step_sleep: Pacing delay in seconds before each oracle call.
        max_frontier_urls: Search is disabled once this many URLs are
            known but unvisited.
        max_gap_questions: Upper bound on sub-questions taken from a
            single reflect decision.
        max_visit_urls: Upper bound on URLs fetched for a single visit
            decision.
        step_token_estimate: Projected cost of one oracle call, used by
            the pre-flight budget check.
        artifacts_dir: Directory for per-step debug artifacts. None
            disables persistence.
        models: Model selection per role.
        on_step: Callback invoked after every step with its StepRecord.
    """

    token_budget: int = 1_000_000
    max_bad_attempts: int = 3
    step_sleep: float = 1.0
    max_frontier_urls: int = 20
    max_gap_questions: int = 2
    max_visit_urls: int = 2
    step_token_estimate: int = 50
    artifacts_dir: str | None = "tmp"
    models: ToolConfigs = field(default_factory=ToolConfigs)
    on_step: Callable[[StepRecord], None] | None = None


@dataclass(frozen=True)
class Settings:
    """Credentials and provider selection for the default collaborators."""

    openai_api_key: str = ""
    openai_base_url: str | None = None
    jina_api_key: str = ""
    brave_api_key: str = ""

    @property
    def search_provider(self) -> SearchProviderName:
        """Brave when a Brave key is configured, DuckDuckGo otherwise."""
        return "brave" if self.brave_api_key else "duck"

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from SLEUTH_OPENAI_*, JINA_API_KEY and BRAVE_API_KEY."""
        return cls(
            openai_api_key=os.environ.get("SLEUTH_OPENAI_API_KEY", ""),
            openai_base_url=os.environ.get("SLEUTH_OPENAI_BASE_URL") or None,
            jina_api_key=os.environ.get("JINA_API_KEY", ""),
            brave_api_key=os.environ.get("BRAVE_API_KEY", ""),
        )

    def require(self, name: str) -> str:
        """Return a credential by attribute name or raise ConfigError."""
        value = getattr(self, name, "")
        if not value:
            env_names = {
                "openai_api_key": "SLEUTH_OPENAI_API_KEY",
                "jina_api_key": "JINA_API_KEY",
                "brave_api_key": "BRAVE_API_KEY",
            }
            raise ConfigError(
                f"{env_names.get(name, name)} not found. Set it in the environment."
            )
        return value
