"""Core research loop.

Provides the ResearchAgent class that repeatedly asks the decision oracle
for one action (search, visit, reflect, answer), folds the outcome into
the run's ResearchContext, and stops when the original question gets a
definitive answer, the token budget is spent, or the bad-attempt ceiling
is reached. A run that ends without an accepted answer makes one final
answer-only request ("beast mode") whose result is returned as is.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sleuth.agent.state import ResearchContext, ResearchState, TrackerContext
from sleuth.agent.storage import ContextStore
from sleuth.config import AgentConfig, Settings
from sleuth.exceptions import BudgetExceededError
from sleuth.models import (
    AnswerAction,
    BadAttempt,
    KnowledgeItem,
    ReflectAction,
    SearchAction,
    StepRecord,
    VisitAction,
    dump_decision,
    parse_decision,
)
from sleuth.prompts.agent import build_prompt, build_schema, permitted_flags
from sleuth.tokens import TokenTracker
from sleuth.tools.dedup import dedup_queries, exact_dedup
from sleuth.tools.error_analyzer import analyze_steps
from sleuth.tools.evaluator import evaluate_answer
from sleuth.tools.query_rewriter import rewrite_query

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from sleuth.config import ModelConfig
    from sleuth.llm.generator import ObjectGenerator
    from sleuth.models import ReadResponse, StepAction
    from sleuth.tools.read import Reader
    from sleuth.tools.search import SearchProvider

logger = logging.getLogger(__name__)

_ACTION_ORDER = ("search", "visit", "answer", "reflect")

NO_NEW_QUESTIONS = (
    "I have tried all possible questions and found no useful information. "
    "I must think out of the box or different angle!!!"
)
NO_NEW_QUERIES = (
    "I have tried all possible queries and found no new information. "
    "I must think out of the box or different angle!!!"
)
NO_NEW_URLS = (
    "I have visited all possible URLs and found no new information. "
    "I must think out of the box or different angle!!!"
)


def remove_all_line_breaks(text: str) -> str:
    return text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


@dataclass(frozen=True)
class ResearchResult:
    """Final result of a research run.

    Attributes:
        result: The final answer decision (with references).
        context: Trackers holding the run's usage, reusable to resume.
        state: How the main loop ended: ANSWERED, EXHAUSTED (bad-attempt
            ceiling) or BEAST_MODE (budget or attempts ran out). Anything
            but ANSWERED means ``result`` came from beast mode.
        research: The loop state at the end of the run.
    """

    result: AnswerAction
    context: TrackerContext
    state: ResearchState
    research: ResearchContext

    @property
    def answered(self) -> bool:
        """True when the original question got an accepted definitive answer."""
        return self.state is ResearchState.ANSWERED

    @property
    def missing_references(self) -> bool:
        return self.research.missing_references

    @property
    def usage(self) -> dict:
        return self.context.token_tracker.summary()


class ResearchAgent:
    """Iterative search / visit / reflect / answer agent.

    Usage::

        agent = ResearchAgent(generator, DuckDuckGoSearch(), JinaReader(key))
        outcome = agent.run("Who maintains the tenacity library?")
        print(outcome.result.answer)
    """

    def __init__(
        self,
        generator: ObjectGenerator,
        search: SearchProvider,
        reader: Reader,
        config: AgentConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        store: ContextStore | None = None,
    ) -> None:
        self._generator = generator
        self._search = search
        self._reader = reader
        self._config = config or AgentConfig()
        self._sleep = sleep
        if store is None and self._config.artifacts_dir:
            store = ContextStore(self._config.artifacts_dir)
        self._store = store

    @property
    def config(self) -> AgentConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(
        self,
        question: str,
        existing_context: TrackerContext | None = None,
    ) -> ResearchResult:
        """Research ``question`` until answered or out of budget/attempts.

        Args:
            question: The original question.
            existing_context: Trackers from an earlier run; their usage
                counts against this run's budget.

        Returns:
            ResearchResult with the final answer and trackers.

        Raises:
            BudgetExceededError: If the pre-flight check rejects an oracle call.
            DecisionError: On malformed or unpermitted oracle decisions.
            AdapterError: If a search or fetch fails.
        """
        trackers = existing_context or TrackerContext(
            token_tracker=TokenTracker(self._config.token_budget)
        )
        ctx = ResearchContext.start(question)
        trackers.action_tracker.track_action(gaps=ctx.gaps, total_step=0, bad_attempts=0)

        while self.should_continue(ctx, trackers.token_tracker):
            self._sleep(self._config.step_sleep)
            self.step(ctx, trackers)

        ctx.step += 1
        ctx.total_step += 1
        self._persist(ctx)

        if ctx.state is ResearchState.ANSWERED:
            outcome = ctx.state
            answer = ctx.this_step
        else:
            # A last-resort acceptance still goes through beast mode; the
            # accepted answer is already in the diary it is prompted with.
            outcome = (
                ResearchState.EXHAUSTED
                if ctx.state is ResearchState.EXHAUSTED
                else ResearchState.BEAST_MODE
            )
            answer = self.beast_mode(ctx, trackers)

        ctx.state = ResearchState.DONE
        return ResearchResult(result=answer, context=trackers, state=outcome, research=ctx)

    def should_continue(self, ctx: ResearchContext, tracker: TokenTracker) -> bool:
        """Step-boundary termination check."""
        return (
            ctx.state is ResearchState.RUNNING
            and tracker.get_total_usage() < self._config.token_budget
            and ctx.bad_attempts <= self._config.max_bad_attempts
        )

    def step(self, ctx: ResearchContext, trackers: TrackerContext) -> StepRecord:
        """Run one iteration: pick a question, ask the oracle, apply the outcome."""
        tracker = trackers.token_tracker
        ctx.step += 1
        ctx.total_step += 1
        trackers.action_tracker.track_action(
            total_step=ctx.total_step,
            this_step=dump_decision(ctx.this_step) if ctx.this_step else None,
            gaps=ctx.gaps,
            bad_attempts=ctx.bad_attempts,
        )
        budget = self._config.token_budget
        logger.info(
            "Step %d / Budget used %.2f%%",
            ctx.total_step,
            tracker.get_total_usage() / budget * 100 if budget > 0 else 100.0,
        )
        logger.info("Gaps: %s", list(ctx.gaps))

        permitted = ctx.permissions.compute(
            gap_count=len(ctx.gaps),
            frontier_size=len(ctx.url_frontier),
            max_frontier=self._config.max_frontier_urls,
        )
        current = ctx.next_question()
        ctx.prompt = build_prompt(
            current,
            diary=ctx.diary,
            bad_context=ctx.bad_context,
            knowledge=ctx.knowledge,
            url_frontier=ctx.url_frontier,
            **permitted_flags(permitted),
        )

        decision = self._decide(ctx.prompt, permitted, self._config.models.agent, tracker)
        logger.info(
            "%s <- [%s]",
            decision.action,
            ", ".join(a for a in _ACTION_ORDER if a in permitted),
        )
        ctx.permissions.clear()
        ctx.this_step = decision

        if isinstance(decision, AnswerAction):
            record = self._handle_answer(ctx, current, decision, tracker)
        elif isinstance(decision, ReflectAction):
            record = self._handle_reflect(ctx, current, decision, tracker)
        elif isinstance(decision, SearchAction):
            record = self._handle_search(ctx, current, decision, tracker)
        else:
            record = self._handle_visit(ctx, current, decision, tracker)

        ctx.transcript.append(record)
        if self._config.on_step is not None:
            try:
                self._config.on_step(record)
            except Exception:
                logger.debug("on_step callback error", exc_info=True)
        self._persist(ctx)
        return record

    def beast_mode(self, ctx: ResearchContext, trackers: TrackerContext) -> AnswerAction:
        """Force a best-effort answer to the original question.

        Only ``answer`` is permitted and no pre-flight budget check is made.
        """
        ctx.state = ResearchState.BEAST_MODE
        logger.info("Enter Beast mode!!!")
        ctx.prompt = build_prompt(
            ctx.question,
            diary=ctx.diary,
            allow_reflect=False,
            allow_answer=False,
            allow_read=False,
            allow_search=False,
            bad_context=ctx.bad_context,
            knowledge=ctx.knowledge,
            url_frontier=ctx.url_frontier,
            beast_mode=True,
        )
        decision = self._decide(
            ctx.prompt,
            {"answer"},
            self._config.models.agent_beast_mode,
            trackers.token_tracker,
            check_budget=False,
        )
        ctx.this_step = decision
        self._persist(ctx)
        return decision

    # ------------------------------------------------------------------
    # Oracle
    # ------------------------------------------------------------------

    def _decide(
        self,
        prompt: str,
        permitted: Iterable[str],
        model: ModelConfig,
        tracker: TokenTracker,
        *,
        check_budget: bool = True,
    ) -> StepAction:
        if check_budget:
            projected = tracker.get_total_usage() + self._config.step_token_estimate
            if projected > self._config.token_budget:
                raise BudgetExceededError(projected, self._config.token_budget)

        flags = permitted_flags(permitted)
        schema = build_schema(
            flags["allow_reflect"],
            flags["allow_read"],
            flags["allow_answer"],
            flags["allow_search"],
            max_questions=self._config.max_gap_questions,
            max_urls=self._config.max_visit_urls,
        )
        result = self._generator.generate(model, schema, prompt, tool="agent", tracker=tracker)
        decision = parse_decision(result.object, permitted)
        logger.debug("Decision: %s", dump_decision(decision))
        return decision

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------

    def _handle_answer(
        self,
        ctx: ResearchContext,
        current: str,
        decision: AnswerAction,
        tracker: TokenTracker,
    ) -> StepRecord:
        evaluation = evaluate_answer(
            current,
            decision.answer,
            generator=self._generator,
            tracker=tracker,
            config=self._config.models.evaluator,
        )
        record = StepRecord(
            total_step=ctx.total_step,
            question=current,
            decision=decision,
            result=evaluation.model_dump(),
        )

        if not ctx.is_original(current):
            if evaluation.is_definitive:
                ctx.diary.append(
                    f"\nAt step {ctx.step}, you took **answer** action. You found a good "
                    f"answer to the sub-question:\n\nSub-question: \n{current}\n\n"
                    f"Your answer: \n{decision.answer}\n\n"
                    f"The evaluator thinks your answer is good because: \n{evaluation.reasoning}\n\n"
                    "Although you solved a sub-question, you still need to find the answer "
                    "to the original question. You need to keep going.\n"
                )
                ctx.knowledge.append(
                    KnowledgeItem(question=current, answer=decision.answer, kind="qa")
                )
            return record

        if ctx.bad_attempts >= self._config.max_bad_attempts:
            ctx.diary.append(
                f"\nAt step {ctx.step} and {ctx.bad_attempts} attempts, you took **answer** "
                "action and found an answer, not a perfect one but good enough to answer "
                f"the original question:\n\nOriginal question: \n{current}\n\n"
                f"Your answer: \n{decision.answer}\n\n"
                f"The evaluator thinks your answer is good because: \n{evaluation.reasoning}\n\n"
                "Your journey ends here.\n"
            )
            ctx.state = ResearchState.EXHAUSTED
            return record

        if evaluation.is_definitive:
            if decision.references or not ctx.discovered_any_url:
                ctx.diary.append(
                    f"\nAt step {ctx.step}, you took **answer** action and finally found the "
                    f"answer to the original question:\n\nOriginal question: \n{current}\n\n"
                    f"Your answer: \n{decision.answer}\n\n"
                    f"The evaluator thinks your answer is good because: \n{evaluation.reasoning}\n\n"
                    "Your journey ends here. You have successfully answered the original "
                    "question. Congratulations!\n"
                )
            else:
                ctx.missing_references = True
                ctx.diary.append(
                    f"\nAt step {ctx.step}, you took **answer** action and finally found the "
                    f"answer to the original question:\n\nOriginal question: \n{current}\n\n"
                    f"Your answer: \n{decision.answer}\n\n"
                    "Unfortunately, you did not provide any references to support your answer. \n"
                    "You need to find more URL references to support your answer."
                )
                logger.warning("Accepted an answer without references")
            ctx.state = ResearchState.ANSWERED
            return record

        ctx.diary.append(
            f"\nAt step {ctx.step}, you took **answer** action but evaluator thinks it is "
            f"not a good answer:\n\nOriginal question: \n{current}\n\n"
            f"Your answer: \n{decision.answer}\n\n"
            f"The evaluator thinks your answer is bad because: \n{evaluation.reasoning}\n"
        )
        analysis = analyze_steps(
            ctx.diary,
            generator=self._generator,
            tracker=tracker,
            config=self._config.models.error_analyzer,
        )
        ctx.record_bad_attempt(
            BadAttempt(
                question=current,
                answer=decision.answer,
                evaluation=evaluation.reasoning,
                recap=analysis.recap,
                blame=analysis.blame,
                improvement=analysis.improvement,
            )
        )
        logger.info("Bad attempt %d: %s", ctx.bad_attempts, analysis.blame)
        return record

    def _handle_reflect(
        self,
        ctx: ResearchContext,
        current: str,
        decision: ReflectAction,
        tracker: TokenTracker,
    ) -> StepRecord:
        proposed = [q.strip() for q in decision.questions_to_answer if q.strip()]
        proposed = proposed[: self._config.max_gap_questions]
        new_questions: list[str] = []
        if proposed:
            new_questions = dedup_queries(
                proposed,
                ctx.all_questions,
                generator=self._generator,
                tracker=tracker,
                config=self._config.models.dedup,
            ).unique_queries

        if new_questions:
            bullet_list = "\n".join(f"- {q}" for q in new_questions)
            ctx.diary.append(
                f"\nAt step {ctx.step}, you took **reflect** and think about the knowledge "
                "gaps. You found some sub-questions are important to the question: "
                f'"{current}"\nYou realize you need to know the answers to the following '
                f"sub-questions:\n{bullet_list}\n\n"
                "You will now figure out the answers to these sub-questions and see if "
                "they can help you find the answer to the original question.\n"
            )
            ctx.add_gaps(new_questions)
            return StepRecord(
                total_step=ctx.total_step,
                question=current,
                decision=decision,
                result={"newQuestions": new_questions},
            )

        ctx.diary.append(
            f"\nAt step {ctx.step}, you took **reflect** and think about the knowledge gaps. "
            f'You tried to break down the question "{current}" into gap-questions like '
            f"this: {', '.join(proposed)} \nBut then you realized you have asked them "
            "before. You decided to to think out of the box or cut from a completely "
            "different angle. \n"
        )
        ctx.permissions.suppress("reflect")
        return StepRecord(
            total_step=ctx.total_step, decision=decision, result=NO_NEW_QUESTIONS
        )

    def _handle_search(
        self,
        ctx: ResearchContext,
        current: str,
        decision: SearchAction,
        tracker: TokenTracker,
    ) -> StepRecord:
        if not decision.search_query.strip():
            return StepRecord(total_step=ctx.total_step, question=current, decision=decision)

        keywords = rewrite_query(
            decision,
            generator=self._generator,
            tracker=tracker,
            config=self._config.models.query_rewriter,
        ).queries
        if ctx.all_keywords:
            new_keywords = dedup_queries(
                keywords,
                ctx.all_keywords,
                generator=self._generator,
                tracker=tracker,
                config=self._config.models.dedup,
            ).unique_queries
        else:
            new_keywords = exact_dedup(keywords, [])

        if not new_keywords:
            ctx.diary.append(
                f"\nAt step {ctx.step}, you took the **search** action and look for external "
                f'information for the question: "{current}".\nIn particular, you tried to '
                f"search for the following keywords: {', '.join(keywords)}. \n"
                "But then you realized you have already searched for these keywords before.\n"
                "You decided to think out of the box or cut from a completely different angle.\n"
            )
            ctx.permissions.suppress("search")
            return StepRecord(
                total_step=ctx.total_step, decision=decision, result=NO_NEW_QUERIES
            )

        search_results = []
        for query in new_keywords:
            logger.info("Search query: %s", query)
            results = self._search.search(query)
            ctx.add_search_results(results)
            search_results.append(
                {"query": query, "results": [r.model_dump() for r in results]}
            )
            ctx.all_keywords.append(query)

        ctx.diary.append(
            f"\nAt step {ctx.step}, you took the **search** action and look for external "
            f'information for the question: "{current}".\nIn particular, you tried to search '
            f'for the following keywords: "{", ".join(new_keywords)}".\n'
            "You found quite some information and add them to your URL list and **visit** "
            "them later when needed. \n"
        )
        return StepRecord(
            total_step=ctx.total_step,
            question=current,
            decision=decision,
            result=search_results,
        )

    def _handle_visit(
        self,
        ctx: ResearchContext,
        current: str,
        decision: VisitAction,
        tracker: TokenTracker,
    ) -> StepRecord:
        targets = decision.url_targets[: self._config.max_visit_urls]
        if not targets:
            return StepRecord(total_step=ctx.total_step, question=current, decision=decision)

        unique_urls: list[str] = []
        for url in targets:
            if url not in unique_urls and not ctx.has_visited(url):
                unique_urls.append(url)

        target_list = "\n".join(targets)
        if not unique_urls:
            ctx.diary.append(
                f"\nAt step {ctx.step}, you took the **visit** action and try to visit the "
                f"following URLs:\n{target_list}\nBut then you realized you have already "
                "visited these URLs and you already know very well about their contents.\n\n"
                "You decided to think out of the box or cut from a completely different angle."
            )
            ctx.permissions.suppress("visit")
            return StepRecord(
                total_step=ctx.total_step, decision=decision, result=NO_NEW_URLS
            )

        responses = self._read_all(unique_urls, tracker)
        url_results = []
        for url, response in zip(unique_urls, responses):
            ctx.knowledge.append(
                KnowledgeItem(
                    question=f"What is in {response.url or 'the URL'}?",
                    answer=remove_all_line_breaks(response.content or "No content available"),
                    kind="url",
                )
            )
            ctx.mark_visited(url)
            url_results.append({"url": url, "result": response.model_dump()})

        ctx.diary.append(
            f"\nAt step {ctx.step}, you took the **visit** action and deep dive into the "
            f"following URLs:\n{target_list}\n"
            "You found some useful information on the web and add them to your knowledge "
            "for future reference.\n"
        )
        return StepRecord(
            total_step=ctx.total_step,
            question=current,
            decision=decision,
            result=url_results,
        )

    def _read_all(self, urls: list[str], tracker: TokenTracker) -> list[ReadResponse]:
        """Fetch ``urls`` concurrently; the first failure aborts the step."""
        pool = ThreadPoolExecutor(max_workers=len(urls), thread_name_prefix="sleuth-read")
        try:
            futures = [pool.submit(self._reader.read_url, url, tracker) for url in urls]
            done, _pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in futures:
                if future in done and future.exception() is not None:
                    future.result()
            return [future.result() for future in futures]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _persist(self, ctx: ResearchContext) -> None:
        if self._store is not None:
            self._store.store(ctx.prompt, ctx, ctx.total_step)


def get_response(
    question: str,
    token_budget: int = 1_000_000,
    max_bad_attempts: int = 3,
    existing_context: TrackerContext | None = None,
    *,
    generator: ObjectGenerator | None = None,
    search: SearchProvider | None = None,
    reader: Reader | None = None,
    config: AgentConfig | None = None,
    settings: Settings | None = None,
) -> ResearchResult:
    """Run a research agent with default collaborators where none are given.

    Default collaborators are built from ``settings`` (or the environment):
    an OpenAI-compatible client, Brave or DuckDuckGo search, and the Jina
    reader.

    Raises:
        ConfigError: If a default collaborator needs a missing API key.
    """
    from sleuth.llm.client import OpenAIClient
    from sleuth.llm.generator import ObjectGenerator as _ObjectGenerator
    from sleuth.tools.read import JinaReader
    from sleuth.tools.search import build_search_provider

    config = dataclasses.replace(
        config or AgentConfig(),
        token_budget=token_budget,
        max_bad_attempts=max_bad_attempts,
    )
    settings = settings or Settings.from_env()
    if generator is None:
        generator = _ObjectGenerator(
            OpenAIClient(
                api_key=settings.require("openai_api_key"),
                base_url=settings.openai_base_url,
            )
        )
    if search is None:
        search = build_search_provider(settings)
    if reader is None:
        reader = JinaReader(settings.require("jina_api_key"))

    agent = ResearchAgent(generator, search, reader, config)
    return agent.run(question, existing_context)
