"""Query rewriter: turns a free-text search request into keyword queries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from sleuth.config import ToolConfigs
from sleuth.exceptions import DecisionError
from sleuth.models import KeywordsResponse
from sleuth.prompts.tools import QUERY_REWRITER_SCHEMA, build_query_rewriter_prompt

if TYPE_CHECKING:
    from sleuth.config import ModelConfig
    from sleuth.llm.generator import ObjectGenerator
    from sleuth.models import SearchAction
    from sleuth.tokens import TokenTracker

logger = logging.getLogger(__name__)

MAX_QUERIES = 3


def rewrite_query(
    action: SearchAction,
    *,
    generator: ObjectGenerator,
    tracker: TokenTracker | None = None,
    config: ModelConfig | None = None,
) -> KeywordsResponse:
    """Rewrite ``action.search_query`` into at most three keyword queries.

    Blank queries are dropped; the original query is used when the
    rewriter returns nothing usable.
    """
    result = generator.generate(
        config or ToolConfigs().query_rewriter,
        QUERY_REWRITER_SCHEMA,
        build_query_rewriter_prompt(action.search_query, action.thoughts),
        tool="query_rewriter",
        tracker=tracker,
    )
    try:
        response = KeywordsResponse.model_validate(result.object)
    except ValidationError as exc:
        raise DecisionError(f"Invalid query rewrite: {exc}", result.object) from exc

    queries = [q.strip() for q in response.queries if q.strip()][:MAX_QUERIES]
    if not queries:
        queries = [action.search_query.strip()]
    logger.info("Rewrote %r -> %s", action.search_query, queries)
    return KeywordsResponse(think=response.think, queries=queries)
