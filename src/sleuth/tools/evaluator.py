"""Answer evaluator: decides whether a candidate answer is definitive."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from sleuth.config import ToolConfigs
from sleuth.exceptions import DecisionError
from sleuth.models import EvaluationResponse
from sleuth.prompts.tools import EVALUATOR_SCHEMA, build_evaluator_prompt

if TYPE_CHECKING:
    from sleuth.config import ModelConfig
    from sleuth.llm.generator import ObjectGenerator
    from sleuth.tokens import TokenTracker

logger = logging.getLogger(__name__)


def evaluate_answer(
    question: str,
    answer: str,
    *,
    generator: ObjectGenerator,
    tracker: TokenTracker | None = None,
    config: ModelConfig | None = None,
) -> EvaluationResponse:
    """Judge whether ``answer`` definitively answers ``question``.

    Raises:
        DecisionError: If the evaluator's response does not match its schema.
    """
    result = generator.generate(
        config or ToolConfigs().evaluator,
        EVALUATOR_SCHEMA,
        build_evaluator_prompt(question, answer),
        tool="evaluator",
        tracker=tracker,
    )
    try:
        evaluation = EvaluationResponse.model_validate(result.object)
    except ValidationError as exc:
        raise DecisionError(f"Invalid evaluator response: {exc}", result.object) from exc
    logger.debug("Evaluation for %r: definitive=%s", question, evaluation.is_definitive)
    return evaluation
