"""Integration tests for the research agent loop.

Tests cover acceptance, sub-questions, bad attempts, the bad-attempt
ceiling, budget exhaustion and beast mode, URL visiting, query
deduplication, per-step action suppression, and hard failures.

All tests use a scripted LLM client and fake adapters -- no real API calls.
"""

from __future__ import annotations

import json
import threading

import pytest

from sleuth.agent.loop import (
    NO_NEW_QUERIES,
    NO_NEW_QUESTIONS,
    NO_NEW_URLS,
    ResearchAgent,
    get_response,
)
from sleuth.agent.state import ResearchContext, ResearchState, TrackerContext
from sleuth.config import AgentConfig, Settings
from sleuth.exceptions import (
    BudgetExceededError,
    ConfigError,
    DecisionError,
    ReadError,
    SearchError,
)
from sleuth.llm.generator import ObjectGenerator
from sleuth.models import KnowledgeItem
from sleuth.tokens import TokenTracker
from tests.conftest import (
    ANALYSIS,
    QUESTION,
    FakeReader,
    FakeSearch,
    ScriptedLLM,
    answer,
    evaluation,
    keywords,
    reflect,
    result,
    search,
    unique,
    visit,
)


# ---------------------------------------------------------------------------
# Acceptance
# ---------------------------------------------------------------------------


class TestAcceptance:
    def test_definitive_first_answer_ends_run(self, make_agent):
        llm = ScriptedLLM({"agent": [answer("Guido van Rossum")], "evaluator": [evaluation(True)]})
        outcome = make_agent(llm).run(QUESTION)

        assert outcome.state is ResearchState.ANSWERED
        assert outcome.answered
        assert outcome.result.answer == "Guido van Rossum"
        assert len(llm.calls_for("agent")) == 1
        assert len(outcome.research.transcript) == 1
        assert outcome.research.total_step == 2
        assert not outcome.missing_references

    def test_usage_is_metered_per_tool(self, make_agent):
        llm = ScriptedLLM({"agent": [answer("Guido")], "evaluator": [evaluation(True)]}, tokens=7)
        outcome = make_agent(llm).run(QUESTION)

        assert outcome.usage["total_tokens"] == 14
        assert outcome.usage["breakdown"] == {"agent": 7, "evaluator": 7}

    def test_first_step_offers_no_visit(self, make_agent):
        llm = ScriptedLLM({"agent": [answer("Guido")], "evaluator": [evaluation(True)]})
        make_agent(llm).run(QUESTION)

        assert llm.enum_for(0) == ["search", "answer", "reflect"]

    def test_answer_without_references_after_search_is_flagged(self, make_agent):
        llm = ScriptedLLM({
            "agent": [search("python creator"), answer("Guido")],
            "query_rewriter": [keywords("python creator")],
            "evaluator": [evaluation(True)],
        })
        provider = FakeSearch({"python creator": [result("https://a")]})
        outcome = make_agent(llm, provider).run(QUESTION)

        assert outcome.state is ResearchState.ANSWERED
        assert outcome.missing_references
        assert outcome.research.url_frontier == {"https://a": "Title https://a"}

    def test_answer_with_references_after_search(self, make_agent):
        llm = ScriptedLLM({
            "agent": [search("python creator"), answer("Guido", "https://a")],
            "query_rewriter": [keywords("python creator")],
            "evaluator": [evaluation(True)],
        })
        provider = FakeSearch({"python creator": [result("https://a")]})
        outcome = make_agent(llm, provider).run(QUESTION)

        assert outcome.answered
        assert not outcome.missing_references
        assert outcome.result.references[0].url == "https://a"


# ---------------------------------------------------------------------------
# Sub-questions
# ---------------------------------------------------------------------------


class TestSubQuestions:
    def test_reflect_queues_gaps_before_original(self, make_agent):
        q1 = "When was Python first released?"
        q2 = "Who is Guido van Rossum?"
        llm = ScriptedLLM({
            "agent": [reflect(q1, q2), answer("1991"), answer("A Dutch programmer"), answer("Guido")],
            "dedup": [unique(q1, q2)],
            "evaluator": [evaluation(True)],
        })
        outcome = make_agent(llm).run(QUESTION)

        prompts = [c["prompt"] for c in llm.calls_for("agent")]
        assert f"## Question\n{q1}" in prompts[1]
        assert f"## Question\n{q2}" in prompts[2]
        assert f"## Question\n{QUESTION}" in prompts[3]
        assert outcome.answered
        assert outcome.research.all_questions == [QUESTION, q1, q2]
        assert outcome.research.knowledge == [
            KnowledgeItem(question=q1, answer="1991", kind="qa"),
            KnowledgeItem(question=q2, answer="A Dutch programmer", kind="qa"),
        ]

    def test_reflect_disabled_while_several_gaps_pending(self, make_agent):
        q1, q2 = "First gap?", "Second gap?"
        llm = ScriptedLLM({
            "agent": [reflect(q1, q2), answer("a"), answer("b"), answer("Guido")],
            "dedup": [unique(q1, q2)],
            "evaluator": [evaluation(True)],
        })
        make_agent(llm).run(QUESTION)

        assert "reflect" not in llm.enum_for(1)
        assert "reflect" not in llm.enum_for(2)
        assert "reflect" in llm.enum_for(3)

    def test_non_definitive_sub_answer_is_discarded(self, make_agent):
        llm = ScriptedLLM({
            "agent": [reflect("What year?"), answer("not sure"), answer("Guido")],
            "dedup": [unique("What year?")],
            "evaluator": [evaluation(False), evaluation(True)],
        })
        outcome = make_agent(llm).run(QUESTION)

        assert outcome.research.knowledge == []
        assert outcome.research.bad_attempts == 0
        assert llm.calls_for("error_analyzer") == []
        assert outcome.answered

    def test_reflect_truncated_to_max_gap_questions(self, make_agent):
        llm = ScriptedLLM({
            "agent": [reflect("a?", "b?", "c?"), answer("x"), answer("y"), answer("Guido")],
            "dedup": [unique("a?", "b?")],
            "evaluator": [evaluation(True)],
        })
        outcome = make_agent(llm).run(QUESTION)

        assert outcome.research.all_questions == [QUESTION, "a?", "b?"]

    def test_reflect_without_new_questions_suppresses_reflect(self, make_agent):
        llm = ScriptedLLM({
            "agent": [reflect(QUESTION), answer("Guido")],
            "evaluator": [evaluation(True)],
        })
        outcome = make_agent(llm).run(QUESTION)

        assert llm.calls_for("dedup") == []
        assert outcome.research.transcript[0].result == NO_NEW_QUESTIONS
        assert "reflect" not in llm.enum_for(1)
        assert outcome.research.all_questions == [QUESTION]


# ---------------------------------------------------------------------------
# Bad attempts
# ---------------------------------------------------------------------------


def _bad_then_good_scripts(final: dict, evaluations: list[dict]) -> dict:
    return {
        "agent": [answer("Maybe Linus?"), search("python creator"), final],
        "evaluator": evaluations,
        "error_analyzer": [ANALYSIS],
        "query_rewriter": [keywords("python creator")],
    }


class TestBadAttempts:
    def test_rejection_records_attempt_and_resets_diary(self, make_agent):
        llm = ScriptedLLM(_bad_then_good_scripts(
            answer("Guido", "https://a"), [evaluation(False, "hedged"), evaluation(True)],
        ))
        provider = FakeSearch({"python creator": [result("https://a")]})
        outcome = make_agent(llm, provider).run(QUESTION)

        research = outcome.research
        assert outcome.answered
        assert research.bad_attempts == 1
        assert research.bad_context[0].answer == "Maybe Linus?"
        assert research.bad_context[0].evaluation == "hedged"
        assert research.bad_context[0].blame == ANALYSIS["blame"]
        assert research.bad_context[0].recap == ANALYSIS["recap"]
        assert "At step 1, you took the **search** action" in research.diary[0]
        assert research.step == 3
        assert research.total_step == 4

    def test_answer_suppressed_for_one_step_after_rejection(self, make_agent):
        llm = ScriptedLLM(_bad_then_good_scripts(
            answer("Guido", "https://a"), [evaluation(False), evaluation(True)],
        ))
        provider = FakeSearch({"python creator": [result("https://a")]})
        make_agent(llm, provider).run(QUESTION)

        assert "answer" not in llm.enum_for(1)
        assert "answer" in llm.enum_for(2)

    def test_failed_attempts_appear_in_later_prompts(self, make_agent):
        llm = ScriptedLLM(_bad_then_good_scripts(
            answer("Guido", "https://a"), [evaluation(False), evaluation(True)],
        ))
        provider = FakeSearch({"python creator": [result("https://a")]})
        make_agent(llm, provider).run(QUESTION)

        prompt = llm.calls_for("agent")[2]["prompt"]
        assert "## Unsuccessful Attempts" in prompt
        assert "- Answer: Maybe Linus?" in prompt
        assert "## Learned Strategy\nSearch before answering." in prompt

    def test_ceiling_accepts_last_answer_then_beast_mode(self, make_agent):
        scripts = _bad_then_good_scripts(answer("Probably Linus"), [evaluation(False)])
        scripts["agent"].append(answer("# Report\n\nProbably Guido"))
        llm = ScriptedLLM(scripts)
        provider = FakeSearch({"python creator": [result("https://a")]})
        outcome = make_agent(llm, provider, max_bad_attempts=1).run(QUESTION)

        assert outcome.state is ResearchState.EXHAUSTED
        assert not outcome.answered
        assert outcome.research.state is ResearchState.DONE
        assert outcome.result.answer == "# Report\n\nProbably Guido"
        assert len(llm.calls_for("agent")) == 4
        assert llm.enum_for(3) == ["answer"]
        assert "Probably Linus" in llm.calls_for("agent")[3]["prompt"]
        assert len(llm.calls_for("error_analyzer")) == 1

    def test_rejection_count_never_exceeds_ceiling(self, make_agent):
        llm = ScriptedLLM({
            "agent": [answer("no"), search("q1"), answer("no"), search("q2"), answer("no")],
            "evaluator": [evaluation(False)],
            "error_analyzer": [ANALYSIS],
            "query_rewriter": [keywords("q1"), keywords("q2")],
            "dedup": [unique("q2")],
        })
        outcome = make_agent(llm, max_bad_attempts=2).run(QUESTION)

        assert outcome.research.bad_attempts == 2
        assert outcome.state is ResearchState.EXHAUSTED


# ---------------------------------------------------------------------------
# Budget and beast mode
# ---------------------------------------------------------------------------


class TestBudget:
    def test_budget_exhaustion_triggers_beast_mode(self, make_agent):
        llm = ScriptedLLM({
            "agent": [reflect("What year?"), answer("unsure"), answer("# Report\n\nGuido")],
            "dedup": [unique("What year?")],
            "evaluator": [evaluation(False)],
        }, tokens=40)
        outcome = make_agent(llm, token_budget=100, step_token_estimate=10).run(QUESTION)

        assert outcome.state is ResearchState.BEAST_MODE
        assert not outcome.answered
        assert outcome.result.answer.startswith("# Report")
        assert llm.enum_for(2) == ["answer"]
        beast_prompt = llm.calls_for("agent")[2]["prompt"]
        assert "# Investigation Report" in beast_prompt
        assert f"## Question\n{QUESTION}" in beast_prompt
        assert outcome.usage["total_tokens"] == 200

    def test_preflight_check_raises(self, make_agent):
        llm = ScriptedLLM({
            "agent": [reflect("What year?")],
            "dedup": [unique("What year?")],
        }, tokens=40)
        agent = make_agent(llm, token_budget=100, step_token_estimate=50)

        with pytest.raises(BudgetExceededError) as exc_info:
            agent.run(QUESTION)

        assert exc_info.value.projected_tokens == 130
        assert exc_info.value.budget == 100
        assert len(llm.calls_for("agent")) == 1

    def test_step_with_zero_budget_fails_preflight(self, make_agent):
        llm = ScriptedLLM({"agent": [answer("Guido")]})
        agent = make_agent(llm, token_budget=0)
        ctx = ResearchContext.start(QUESTION)

        with pytest.raises(BudgetExceededError) as exc_info:
            agent.step(ctx, TrackerContext(token_tracker=TokenTracker(0)))

        assert exc_info.value.budget == 0
        assert llm.calls == []

    def test_spent_existing_context_goes_straight_to_beast_mode(self, make_agent):
        tracker = TokenTracker(100)
        tracker.track_usage("agent", 100)
        trackers = TrackerContext(token_tracker=tracker)
        llm = ScriptedLLM({"agent": [answer("# Best effort")]})

        outcome = make_agent(llm, token_budget=100).run(QUESTION, trackers)

        assert outcome.state is ResearchState.BEAST_MODE
        assert outcome.context is trackers
        assert outcome.research.transcript == []
        assert llm.enum_for(0) == ["answer"]
        assert tracker.get_total_usage() == 110

    def test_existing_context_usage_counts_against_budget(self, make_agent):
        tracker = TokenTracker(1_000)
        tracker.track_usage("agent", 500)
        llm = ScriptedLLM({"agent": [answer("Guido")], "evaluator": [evaluation(True)]})

        outcome = make_agent(llm).run(QUESTION, TrackerContext(token_tracker=tracker))

        assert outcome.usage["total_tokens"] == 520


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------


class RendezvousReader(FakeReader):
    """Reader whose fetches block until ``parties`` of them are in flight."""

    def __init__(self, parties: int, timeout: float = 5.0) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=timeout)

    def read_url(self, url, tracker=None):
        self.barrier.wait()
        return super().read_url(url, tracker)


class TestVisit:
    def _scripts(self, *decisions: dict) -> ScriptedLLM:
        return ScriptedLLM({
            "agent": [search("python history"), *decisions],
            "query_rewriter": [keywords("python history")],
            "evaluator": [evaluation(True)],
        })

    def _provider(self) -> FakeSearch:
        return FakeSearch({
            "python history": [result("https://a"), result("https://b"), result("https://c")],
        })

    def test_visit_adds_url_knowledge(self, make_agent):
        llm = self._scripts(visit("https://a", "https://b"), answer("Guido", "https://a"))
        reader = FakeReader({"https://a": "Python was\ncreated by Guido."})
        outcome = make_agent(llm, self._provider(), reader).run(QUESTION)

        research = outcome.research
        assert sorted(reader.urls) == ["https://a", "https://b"]
        assert research.knowledge == [
            KnowledgeItem(question="What is in https://a?", answer="Python was created by Guido.", kind="url"),
            KnowledgeItem(question="What is in https://b?", answer="No content available", kind="url"),
        ]
        assert research.visited_urls == ["https://a", "https://b"]
        assert list(research.url_frontier) == ["https://c"]

    def test_frontier_listed_in_prompt(self, make_agent):
        llm = self._scripts(visit("https://a"), answer("Guido", "https://a"))
        make_agent(llm, self._provider()).run(QUESTION)

        prompt = llm.calls_for("agent")[1]["prompt"]
        assert '+ "https://a": "Title https://a"' in prompt
        assert "visit" in llm.enum_for(1)

    def test_visit_truncated_to_max_urls(self, make_agent):
        llm = self._scripts(visit("https://a", "https://b", "https://c"), answer("Guido", "https://a"))
        reader = FakeReader()
        make_agent(llm, self._provider(), reader).run(QUESTION)

        assert sorted(reader.urls) == ["https://a", "https://b"]

    def test_revisit_suppresses_visit(self, make_agent):
        llm = self._scripts(visit("https://a"), visit("https://a"), answer("Guido", "https://a"))
        reader = FakeReader()
        outcome = make_agent(llm, self._provider(), reader).run(QUESTION)

        assert reader.urls == ["https://a"]
        assert outcome.research.transcript[2].result == NO_NEW_URLS
        assert "visit" not in llm.enum_for(3)

    def test_visited_url_not_requeued_by_search(self, make_agent):
        llm = ScriptedLLM({
            "agent": [search("first"), visit("https://a"), search("second"), answer("Guido", "https://a")],
            "query_rewriter": [keywords("first"), keywords("second")],
            "dedup": [unique("second")],
            "evaluator": [evaluation(True)],
        })
        provider = FakeSearch({"first": [result("https://a")], "second": [result("https://a"), result("https://b")]})
        outcome = make_agent(llm, provider).run(QUESTION)

        assert list(outcome.research.url_frontier) == ["https://b"]

    def test_fetches_for_one_visit_run_concurrently(self, make_agent):
        llm = self._scripts(visit("https://a", "https://b"), answer("Guido", "https://a"))
        reader = RendezvousReader(parties=2)
        outcome = make_agent(llm, self._provider(), reader).run(QUESTION)

        assert sorted(reader.urls) == ["https://a", "https://b"]
        assert [item.kind for item in outcome.research.knowledge] == ["url", "url"]

    def test_fetch_failure_propagates(self, make_agent):
        llm = self._scripts(visit("https://a", "https://b"))
        reader = FakeReader(failing={"https://b"})
        agent = make_agent(llm, self._provider(), reader)
        ctx = ResearchContext.start(QUESTION)
        trackers = TrackerContext(token_tracker=TokenTracker())

        agent.step(ctx, trackers)
        with pytest.raises(ReadError):
            agent.step(ctx, trackers)

        assert ctx.knowledge == []
        assert ctx.visited_urls == []
        assert list(ctx.url_frontier) == ["https://a", "https://b", "https://c"]
        assert len(ctx.transcript) == 1

    def test_fetch_failure_aborts_run(self, make_agent):
        llm = self._scripts(visit("https://a", "https://b"))
        reader = FakeReader(failing={"https://b"})

        with pytest.raises(ReadError):
            make_agent(llm, self._provider(), reader).run(QUESTION)

    def test_reader_usage_is_tracked(self, make_agent):
        llm = self._scripts(visit("https://a"), answer("Guido", "https://a"))
        reader = FakeReader(tokens=25)
        outcome = make_agent(llm, self._provider(), reader).run(QUESTION)

        assert outcome.usage["breakdown"]["read"] == 25


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearch:
    def test_known_keywords_are_not_searched_again(self, make_agent):
        llm = ScriptedLLM({
            "agent": [search("first"), search("second"), answer("Guido", "https://a")],
            "query_rewriter": [keywords("a"), keywords("a", "b", "c")],
            "dedup": [unique("b", "c")],
            "evaluator": [evaluation(True)],
        })
        provider = FakeSearch({"a": [result("https://a")]})
        outcome = make_agent(llm, provider).run(QUESTION)

        assert provider.queries == ["a", "b", "c"]
        assert outcome.research.all_keywords == ["a", "b", "c"]
        assert len(llm.calls_for("dedup")) == 1

    def test_no_new_keywords_suppresses_search(self, make_agent):
        llm = ScriptedLLM({
            "agent": [search("first"), search("again"), answer("Guido", "https://a")],
            "query_rewriter": [keywords("a")],
            "evaluator": [evaluation(True)],
        })
        provider = FakeSearch({"a": [result("https://a")]})
        outcome = make_agent(llm, provider).run(QUESTION)

        assert provider.queries == ["a"]
        assert llm.calls_for("dedup") == []
        assert outcome.research.transcript[1].result == NO_NEW_QUERIES
        assert "search" not in llm.enum_for(2)

    def test_search_disabled_at_frontier_cap(self, make_agent):
        llm = ScriptedLLM({
            "agent": [search("x"), answer("Guido", "https://a")],
            "query_rewriter": [keywords("x")],
            "evaluator": [evaluation(True)],
        })
        provider = FakeSearch({"x": [result("https://a"), result("https://b")]})
        make_agent(llm, provider, max_frontier_urls=2).run(QUESTION)

        assert "search" not in llm.enum_for(1)

    def test_blank_query_is_a_no_op(self, make_agent):
        llm = ScriptedLLM({
            "agent": [search("   "), answer("Guido")],
            "evaluator": [evaluation(True)],
        })
        provider = FakeSearch()
        outcome = make_agent(llm, provider).run(QUESTION)

        assert provider.queries == []
        assert outcome.research.transcript[0].result is None
        assert outcome.answered

    def test_search_failure_propagates(self, make_agent):
        class BrokenSearch(FakeSearch):
            def search(self, query):
                super().search(query)
                raise SearchError(query, "service unavailable")

        llm = ScriptedLLM({
            "agent": [search("python creator")],
            "query_rewriter": [keywords("python creator")],
        })
        provider = BrokenSearch()
        agent = make_agent(llm, provider)
        ctx = ResearchContext.start(QUESTION)

        with pytest.raises(SearchError) as exc_info:
            agent.step(ctx, TrackerContext(token_tracker=TokenTracker()))

        assert exc_info.value.query == "python creator"
        assert provider.queries == ["python creator"]
        assert ctx.all_keywords == []
        assert ctx.url_frontier == {}
        assert ctx.transcript == []

    def test_search_failure_aborts_run(self, make_agent):
        class BrokenSearch(FakeSearch):
            def search(self, query):
                raise SearchError(query, "service unavailable")

        llm = ScriptedLLM({
            "agent": [search("python creator")],
            "query_rewriter": [keywords("python creator")],
        })

        with pytest.raises(SearchError):
            make_agent(llm, BrokenSearch()).run(QUESTION)


# ---------------------------------------------------------------------------
# Hard failures
# ---------------------------------------------------------------------------


class TestDecisionErrors:
    def test_unpermitted_action_raises(self, make_agent):
        llm = ScriptedLLM({"agent": [visit("https://a")]})

        with pytest.raises(DecisionError, match="not permitted"):
            make_agent(llm).run(QUESTION)

    def test_non_json_decision_raises(self, make_agent):
        llm = ScriptedLLM({"agent": ["I think I should search."]})

        with pytest.raises(DecisionError):
            make_agent(llm).run(QUESTION)

    def test_missing_required_field_raises(self, make_agent):
        llm = ScriptedLLM({"agent": [{"action": "answer", "answer": "Guido"}]})

        with pytest.raises(DecisionError):
            make_agent(llm).run(QUESTION)


# ---------------------------------------------------------------------------
# Observers, pacing, persistence
# ---------------------------------------------------------------------------


class TestObservers:
    def _llm(self) -> ScriptedLLM:
        return ScriptedLLM({"agent": [answer("Guido")], "evaluator": [evaluation(True)]})

    def test_on_step_receives_records(self, make_agent):
        records = []
        make_agent(self._llm(), on_step=records.append).run(QUESTION)

        assert len(records) == 1
        assert records[0].decision.action == "answer"
        assert records[0].total_step == 1

    def test_on_step_errors_do_not_stop_run(self, make_agent):
        def broken(_record):
            raise RuntimeError("observer failed")

        outcome = make_agent(self._llm(), on_step=broken).run(QUESTION)

        assert outcome.answered

    def test_sleeps_before_each_step(self, make_agent):
        sleeps = []
        make_agent(self._llm(), sleep=sleeps.append, step_sleep=0.5).run(QUESTION)

        assert sleeps == [0.5]

    def test_action_tracker_snapshots(self, make_agent):
        llm = ScriptedLLM(_bad_then_good_scripts(
            answer("Guido", "https://a"), [evaluation(False), evaluation(True)],
        ))
        trackers = TrackerContext(token_tracker=TokenTracker())
        snapshots = []
        trackers.action_tracker.add_listener(snapshots.append)

        make_agent(llm).run(QUESTION, trackers)

        state = trackers.action_tracker.get_state()
        assert state["total_step"] == 3
        assert state["bad_attempts"] == 1
        assert state["this_step"]["action"] == "search"
        assert len(snapshots) == 4

    def test_artifacts_written_each_step(self, make_agent, tmp_path):
        make_agent(self._llm(), artifacts_dir=str(tmp_path)).run(QUESTION)

        assert (tmp_path / "prompt-1.txt").exists()
        assert (tmp_path / "prompt-2.txt").exists()
        transcript = json.loads((tmp_path / "context.json").read_text())
        assert transcript[0]["totalStep"] == 1
        assert transcript[0]["action"] == "answer"
        assert transcript[0]["question"] == QUESTION
        assert json.loads((tmp_path / "questions.json").read_text()) == [QUESTION]


# ---------------------------------------------------------------------------
# get_response
# ---------------------------------------------------------------------------


class TestGetResponse:
    def test_uses_given_collaborators_and_limits(self):
        llm = ScriptedLLM({"agent": [answer("Guido")], "evaluator": [evaluation(True)]})
        config = AgentConfig(step_sleep=0.0, artifacts_dir=None)

        outcome = get_response(
            QUESTION,
            token_budget=500,
            max_bad_attempts=1,
            generator=ObjectGenerator(llm),
            search=FakeSearch(),
            reader=FakeReader(),
            config=config,
            settings=Settings(),
        )

        assert outcome.answered
        assert outcome.context.token_tracker.budget == 500
        assert config.token_budget == 1_000_000

    def test_missing_reader_key_raises_config_error(self):
        llm = ScriptedLLM({"agent": [answer("Guido")]})

        with pytest.raises(ConfigError, match="JINA_API_KEY"):
            get_response(
                QUESTION,
                generator=ObjectGenerator(llm),
                search=FakeSearch(),
                settings=Settings(openai_api_key="sk-test"),
            )

    def test_agent_exposes_config(self):
        config = AgentConfig(step_sleep=0.0, artifacts_dir=None)
        agent = ResearchAgent(ObjectGenerator(ScriptedLLM()), FakeSearch(), FakeReader(), config)

        assert agent.config is config
