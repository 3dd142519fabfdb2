"""Mutable state of one research run.

ResearchContext owns every queue, set and counter the loop mutates, so a
single step can be driven and inspected in isolation. ActionPermissions
holds the one-step suppressions produced by "no new information"
outcomes.
"""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sleuth.actions import ActionTracker
from sleuth.tokens import TokenTracker

if TYPE_CHECKING:
    from sleuth.models import BadAttempt, KnowledgeItem, SearchResult, StepAction, StepRecord


class ResearchState(str, enum.Enum):
    """Lifecycle of a research run."""

    RUNNING = "running"
    ANSWERED = "answered"
    EXHAUSTED = "exhausted"
    BEAST_MODE = "beast_mode"
    DONE = "done"


@dataclass
class TrackerContext:
    """Token and action trackers, shareable across runs to resume a budget."""

    token_tracker: TokenTracker
    action_tracker: ActionTracker = field(default_factory=ActionTracker)


@dataclass
class ActionPermissions:
    """Transient, one-step suppressions of individual actions.

    A suppression is raised by the outcome that found no new information
    and is cleared as soon as the next decision has been received.
    """

    suppressed: set[str] = field(default_factory=set)

    def suppress(self, action: str) -> None:
        self.suppressed.add(action)

    def clear(self) -> None:
        self.suppressed.clear()

    def compute(
        self,
        *,
        gap_count: int,
        frontier_size: int,
        max_frontier: int,
    ) -> frozenset[str]:
        """Return the actions permitted for the coming step.

        - ``search`` is off once the frontier reaches ``max_frontier``.
        - ``visit`` is off while the frontier is empty.
        - ``reflect`` is off while more than one gap is outstanding.
        """
        permitted = {"search", "answer", "reflect", "visit"} - self.suppressed
        if frontier_size >= max_frontier:
            permitted.discard("search")
        if frontier_size == 0:
            permitted.discard("visit")
        if gap_count > 1:
            permitted.discard("reflect")
        return frozenset(permitted)


@dataclass
class ResearchContext:
    """Everything the research loop reads and writes for one question.

    Attributes:
        question: The original question, fixed for the run.
        gaps: Questions still needing resolution, consumed from the front.
        all_questions: Every question asked so far (original first).
        all_keywords: Search keywords already issued.
        knowledge: Append-only resolved sub-questions and URL contents.
        bad_context: One record per rejected answer to the original question.
        diary: Narrative of the current attempt; cleared after a rejection.
        url_frontier: Known-but-unvisited URL -> title.
        visited_urls: URLs already fetched, in visit order.
        transcript: Every decision of the run; never reset.
        step: Step index within the current attempt.
        total_step: Lifetime step index.
        bad_attempts: Rejected answers to the original question so far.
    """

    question: str
    gaps: deque[str] = field(default_factory=deque)
    all_questions: list[str] = field(default_factory=list)
    all_keywords: list[str] = field(default_factory=list)
    knowledge: list[KnowledgeItem] = field(default_factory=list)
    bad_context: list[BadAttempt] = field(default_factory=list)
    diary: list[str] = field(default_factory=list)
    url_frontier: dict[str, str] = field(default_factory=dict)
    visited_urls: list[str] = field(default_factory=list)
    transcript: list[StepRecord] = field(default_factory=list)
    permissions: ActionPermissions = field(default_factory=ActionPermissions)
    step: int = 0
    total_step: int = 0
    bad_attempts: int = 0
    state: ResearchState = ResearchState.RUNNING
    this_step: StepAction | None = None
    prompt: str = ""
    missing_references: bool = False

    @classmethod
    def start(cls, question: str) -> ResearchContext:
        return cls(question=question, gaps=deque([question]), all_questions=[question])

    # ------------------------------------------------------------------
    # Gaps
    # ------------------------------------------------------------------

    def next_question(self) -> str:
        """Pop the front gap, or fall back to the original question."""
        return self.gaps.popleft() if self.gaps else self.question

    def is_original(self, question: str) -> bool:
        return question == self.question

    def add_gaps(self, questions: list[str]) -> None:
        """Queue new sub-questions, then the original question behind them."""
        self.gaps.extend(questions)
        self.all_questions.extend(questions)
        self.gaps.append(self.question)

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def has_visited(self, url: str) -> bool:
        return url in self.visited_urls

    def add_search_results(self, results: list[SearchResult]) -> None:
        """Merge results into the frontier; a later title wins for the same URL.

        Already visited URLs are not re-queued.
        """
        for r in results:
            if self.has_visited(r.url):
                continue
            self.url_frontier[r.url] = r.title

    def mark_visited(self, url: str) -> None:
        if url not in self.visited_urls:
            self.visited_urls.append(url)
        self.url_frontier.pop(url, None)

    @property
    def discovered_any_url(self) -> bool:
        """True once any search has surfaced at least one URL."""
        return bool(self.url_frontier or self.visited_urls)

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def record_bad_attempt(self, attempt: BadAttempt) -> None:
        """Store a rejection and start a fresh attempt narrative."""
        self.bad_context.append(attempt)
        self.bad_attempts += 1
        self.permissions.suppress("answer")
        self.diary = []
        self.step = 0
