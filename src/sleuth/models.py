"""Data models for the research agent.

Oracle decisions are a closed, discriminated union with one variant per
action (search, answer, reflect, visit). Field aliases match the JSON keys
the oracle produces (``searchQuery``, ``questionsToAnswer``, ``URLTargets``,
``exactQuote``); Python code uses the snake_case names.

Also defines the knowledge, bad-attempt and transcript records folded
into loop state, and the response shapes of the oracle-backed tools.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from sleuth.exceptions import DecisionError

ActionName = Literal["search", "answer", "reflect", "visit"]
ALL_ACTIONS: tuple[ActionName, ...] = ("search", "answer", "reflect", "visit")


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


class Reference(_AliasedModel):
    """A quote supporting an answer, with the URL it was taken from."""

    exact_quote: str = Field(default="", alias="exactQuote")
    url: str


class SearchAction(_AliasedModel):
    action: Literal["search"] = "search"
    thoughts: str
    search_query: str = Field(default="", alias="searchQuery")


class AnswerAction(_AliasedModel):
    action: Literal["answer"] = "answer"
    thoughts: str
    answer: str = ""
    references: list[Reference] = Field(default_factory=list)


class ReflectAction(_AliasedModel):
    action: Literal["reflect"] = "reflect"
    thoughts: str
    questions_to_answer: list[str] = Field(default_factory=list, alias="questionsToAnswer")


class VisitAction(_AliasedModel):
    action: Literal["visit"] = "visit"
    thoughts: str
    url_targets: list[str] = Field(default_factory=list, alias="URLTargets")


StepAction = Annotated[
    Union[SearchAction, AnswerAction, ReflectAction, VisitAction],
    Field(discriminator="action"),
]

_step_action_adapter: TypeAdapter[StepAction] = TypeAdapter(StepAction)


def parse_decision(raw: Any, permitted: Iterable[str]) -> StepAction:
    """Validate a raw oracle decision against the permitted action set.

    Args:
        raw: Decoded JSON object returned by the oracle.
        permitted: Actions the oracle was allowed to choose this step.

    Returns:
        The typed decision variant.

    Raises:
        DecisionError: If the payload does not match any variant or names
            an action that was not permitted.
    """
    allowed = set(permitted)
    if not isinstance(raw, dict):
        raise DecisionError(f"Decision must be a JSON object, got {type(raw).__name__}", raw)
    action = raw.get("action")
    if action not in allowed:
        raise DecisionError(
            f"Action {action!r} is not permitted (allowed: {sorted(allowed)})", raw
        )
    try:
        return _step_action_adapter.validate_python(raw)
    except ValidationError as exc:
        raise DecisionError(f"Invalid {action} decision: {exc}", raw) from exc


def dump_decision(decision: StepAction) -> dict:
    """Serialize a decision with the oracle's JSON key names."""
    return decision.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Loop records
# ---------------------------------------------------------------------------


class KnowledgeItem(BaseModel):
    """A resolved sub-question or the extracted content of a visited URL."""

    question: str
    answer: str
    kind: Literal["qa", "url"] = "qa"


class BadAttempt(BaseModel):
    """A rejected answer to the original question and its diagnosis."""

    question: str
    answer: str
    evaluation: str
    recap: str = ""
    blame: str = ""
    improvement: str = ""


class StepRecord(BaseModel):
    """One entry of the action transcript."""

    total_step: int
    question: str | None = None
    decision: StepAction
    result: Any = None

    def to_dict(self) -> dict:
        data = {"totalStep": self.total_step}
        if self.question is not None:
            data["question"] = self.question
        data.update(dump_decision(self.decision))
        if self.result is not None:
            data["result"] = self.result
        return data


# ---------------------------------------------------------------------------
# Tool responses
# ---------------------------------------------------------------------------


class EvaluationResponse(BaseModel):
    is_definitive: bool
    reasoning: str


class DedupResponse(BaseModel):
    think: str = ""
    unique_queries: list[str] = Field(default_factory=list)


class ErrorAnalysisResponse(BaseModel):
    recap: str = ""
    blame: str
    improvement: str


class KeywordsResponse(BaseModel):
    think: str = ""
    queries: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Adapter payloads
# ---------------------------------------------------------------------------


class SearchResult(BaseModel):
    title: str = ""
    url: str
    description: str = ""


class ReadResponse(BaseModel):
    url: str
    title: str = ""
    content: str = ""
