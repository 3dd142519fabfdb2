"""Query deduplicator: keeps only candidates that are semantically new.

Exact duplicates (case- and whitespace-insensitive) are removed locally,
both against the reference list and within the candidate list. Whatever
survives is sent to the oracle for semantic deduplication; its answer is
intersected with the local survivors so the result is always an
order-preserving subset of the input.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import ValidationError

from sleuth.config import ToolConfigs
from sleuth.exceptions import DecisionError
from sleuth.models import DedupResponse
from sleuth.prompts.tools import DEDUP_SCHEMA, build_dedup_prompt

if TYPE_CHECKING:
    from sleuth.config import ModelConfig
    from sleuth.llm.generator import ObjectGenerator
    from sleuth.tokens import TokenTracker

logger = logging.getLogger(__name__)


def normalize_query(text: str) -> str:
    return " ".join(text.lower().split())


def exact_dedup(new_queries: Sequence[str], existing_queries: Sequence[str]) -> list[str]:
    """Drop candidates that exactly repeat a reference or an earlier candidate."""
    seen = {normalize_query(q) for q in existing_queries}
    survivors: list[str] = []
    for query in new_queries:
        key = normalize_query(query)
        if not key or key in seen:
            continue
        seen.add(key)
        survivors.append(query)
    return survivors


def dedup_queries(
    new_queries: Sequence[str],
    existing_queries: Sequence[str],
    *,
    generator: ObjectGenerator,
    tracker: TokenTracker | None = None,
    config: ModelConfig | None = None,
) -> DedupResponse:
    """Return the subset of ``new_queries`` not already covered.

    The oracle is only consulted when candidates survive exact matching.
    """
    survivors = exact_dedup(new_queries, existing_queries)
    if not survivors:
        return DedupResponse(think="All candidates repeat earlier queries.", unique_queries=[])

    result = generator.generate(
        config or ToolConfigs().dedup,
        DEDUP_SCHEMA,
        build_dedup_prompt(survivors, existing_queries),
        tool="dedup",
        tracker=tracker,
    )
    try:
        response = DedupResponse.model_validate(result.object)
    except ValidationError as exc:
        raise DecisionError(f"Invalid dedup response: {exc}", result.object) from exc

    kept = {normalize_query(q) for q in response.unique_queries}
    unique = [q for q in survivors if normalize_query(q) in kept]
    logger.debug("Dedup %s against %d -> %s", list(new_queries), len(existing_queries), unique)
    return DedupResponse(think=response.think, unique_queries=unique)
