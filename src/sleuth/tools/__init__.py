"""Collaborators used by the research loop.

Oracle-backed tools (evaluator, dedup, error analyzer, query rewriter)
and the external search/read adapters.
"""

from sleuth.tools.dedup import dedup_queries
from sleuth.tools.error_analyzer import analyze_steps
from sleuth.tools.evaluator import evaluate_answer
from sleuth.tools.query_rewriter import rewrite_query
from sleuth.tools.read import JinaReader, Reader
from sleuth.tools.search import (
    BraveSearch,
    DuckDuckGoSearch,
    SearchProvider,
    build_search_provider,
)

__all__ = [
    "evaluate_answer",
    "dedup_queries",
    "analyze_steps",
    "rewrite_query",
    "SearchProvider",
    "BraveSearch",
    "DuckDuckGoSearch",
    "build_search_provider",
    "Reader",
    "JinaReader",
]
