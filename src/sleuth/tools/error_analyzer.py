"""Failure analyzer: diagnoses a rejected attempt from its diary."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import ValidationError

from sleuth.config import ToolConfigs
from sleuth.exceptions import DecisionError
from sleuth.models import ErrorAnalysisResponse
from sleuth.prompts.tools import ERROR_ANALYZER_SCHEMA, build_error_analyzer_prompt

if TYPE_CHECKING:
    from sleuth.config import ModelConfig
    from sleuth.llm.generator import ObjectGenerator
    from sleuth.tokens import TokenTracker


def analyze_steps(
    diary: Sequence[str],
    *,
    generator: ObjectGenerator,
    tracker: TokenTracker | None = None,
    config: ModelConfig | None = None,
) -> ErrorAnalysisResponse:
    """Return recap, blame and improvement for the steps in ``diary``."""
    result = generator.generate(
        config or ToolConfigs().error_analyzer,
        ERROR_ANALYZER_SCHEMA,
        build_error_analyzer_prompt(diary),
        tool="error_analyzer",
        tracker=tracker,
    )
    try:
        return ErrorAnalysisResponse.model_validate(result.object)
    except ValidationError as exc:
        raise DecisionError(f"Invalid error analysis: {exc}", result.object) from exc
