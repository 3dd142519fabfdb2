"""Shared test fixtures for Sleuth.

Provides a scripted LLM client (responses keyed by tool name), fake search
and read adapters, and an agent factory with pacing and persistence off.
No test touches the network.
"""

from __future__ import annotations

import json

import pytest

from sleuth.agent.loop import ResearchAgent
from sleuth.config import AgentConfig
from sleuth.exceptions import ReadError
from sleuth.llm.client import OpenAIClient
from sleuth.llm.generator import ObjectGenerator
from sleuth.models import ReadResponse, SearchResult
from sleuth.tokens import TokenTracker

QUESTION = "Who created the Python programming language?"


class ScriptedLLM:
    """Mock LLM client that answers by tool name.

    ``scripts`` maps a tool name (the response-format schema name) to a
    list of responses consumed in order; the last one repeats. Plain-text
    calls use the ``text`` key.
    """

    def __init__(self, scripts: dict[str, list] | None = None, tokens: int = 10) -> None:
        self.scripts = {tool: list(responses) for tool, responses in (scripts or {}).items()}
        self.tokens = tokens
        self.calls: list[dict] = []

    def chat(self, messages, *, model=None, temperature=None, max_tokens=None, **kwargs):
        fmt = kwargs.get("response_format")
        tool = fmt["json_schema"]["name"] if fmt else "text"
        self.calls.append({
            "tool": tool,
            "model": model,
            "prompt": messages[-1]["content"],
            "schema": fmt["json_schema"]["schema"] if fmt else None,
        })
        queue = self.scripts.get(tool)
        if not queue:
            raise AssertionError(f"Unexpected {tool} call")
        obj = queue.pop(0) if len(queue) > 1 else queue[0]
        content = obj if isinstance(obj, str) else json.dumps(obj)
        return {
            "choices": [{"message": {"role": "assistant", "content": content}}],
            "usage": {"total_tokens": self.tokens},
        }

    def close(self) -> None:
        pass

    extract_content = staticmethod(OpenAIClient.extract_content)
    extract_usage = staticmethod(OpenAIClient.extract_usage)

    def calls_for(self, tool: str) -> list[dict]:
        return [c for c in self.calls if c["tool"] == tool]

    def enum_for(self, index: int) -> list[str]:
        """Action enum offered to the agent in its ``index``-th call."""
        return self.calls_for("agent")[index]["schema"]["properties"]["action"]["enum"]


class FakeSearch:
    """Search provider returning canned results per query."""

    def __init__(self, results: dict[str, list[SearchResult]] | None = None) -> None:
        self.results = results or {}
        self.queries: list[str] = []

    def search(self, query: str) -> list[SearchResult]:
        self.queries.append(query)
        return list(self.results.get(query, []))


class FakeReader:
    """Reader returning canned content per URL; ``failing`` URLs raise ReadError."""

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        *,
        failing: set[str] | None = None,
        tokens: int = 0,
    ) -> None:
        self.pages = pages or {}
        self.failing = failing or set()
        self.tokens = tokens
        self.urls: list[str] = []

    def read_url(self, url: str, tracker: TokenTracker | None = None) -> ReadResponse:
        self.urls.append(url)
        if url in self.failing:
            raise ReadError(url, "boom")
        if tracker is not None and self.tokens:
            tracker.track_usage("read", self.tokens)
        return ReadResponse(url=url, title=f"Title of {url}", content=self.pages.get(url, ""))


# ---------------------------------------------------------------------------
# Decision / tool payload helpers
# ---------------------------------------------------------------------------


def answer(text: str, *urls: str, thoughts: str = "I know this.") -> dict:
    return {
        "action": "answer",
        "thoughts": thoughts,
        "answer": text,
        "references": [{"exactQuote": f"quote from {u}", "url": u} for u in urls],
    }


def search(query: str) -> dict:
    return {"action": "search", "thoughts": "Need more facts.", "searchQuery": query}


def reflect(*questions: str) -> dict:
    return {"action": "reflect", "thoughts": "Break it down.", "questionsToAnswer": list(questions)}


def visit(*urls: str) -> dict:
    return {"action": "visit", "thoughts": "Read the sources.", "URLTargets": list(urls)}


def evaluation(definitive: bool, reasoning: str = "because") -> dict:
    return {"is_definitive": definitive, "reasoning": reasoning}


def keywords(*queries: str) -> dict:
    return {"think": "rewrite", "queries": list(queries)}


def unique(*queries: str) -> dict:
    return {"think": "dedup", "unique_queries": list(queries)}


ANALYSIS = {
    "recap": "You answered too early.",
    "blame": "No sources were consulted.",
    "improvement": "Search before answering.",
}


def result(url: str, title: str = "") -> SearchResult:
    return SearchResult(title=title or f"Title {url}", url=url, description=f"About {url}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_agent():
    """Factory: ``make_agent(llm, search=None, reader=None, **config_overrides)``."""

    def _make(llm, search_provider=None, reader=None, *, sleep=None, store=None, **overrides):
        overrides.setdefault("step_sleep", 0.0)
        overrides.setdefault("artifacts_dir", None)
        config = AgentConfig(**overrides)
        return ResearchAgent(
            ObjectGenerator(llm),
            search_provider or FakeSearch(),
            reader or FakeReader(),
            config,
            sleep=sleep or (lambda _seconds: None),
            store=store,
        )

    return _make
