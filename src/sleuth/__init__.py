"""Sleuth: an iterative research agent.

Repeatedly asks a language model to search the web, read pages, break a
question into sub-questions, or answer, until the original question gets a
definitive answer or the token budget runs out.
"""

from sleuth._version import __version__

# Core entry points
from sleuth.agent import (
    ContextStore,
    ResearchAgent,
    ResearchContext,
    ResearchResult,
    ResearchState,
    TrackerContext,
    get_response,
)

# Configuration
from sleuth.config import AgentConfig, ModelConfig, Settings, ToolConfigs

# Trackers
from sleuth.actions import ActionTracker
from sleuth.tokens import TokenTracker, estimate_tokens

# Models
from sleuth.models import (
    AnswerAction,
    BadAttempt,
    KnowledgeItem,
    ReadResponse,
    Reference,
    ReflectAction,
    SearchAction,
    SearchResult,
    StepAction,
    StepRecord,
    VisitAction,
    parse_decision,
)

# Report
from sleuth.report import save_final_report

# Exceptions
from sleuth.exceptions import (
    AdapterError,
    BudgetExceededError,
    ConfigError,
    DecisionError,
    ReadError,
    SearchError,
    SleuthError,
)

__all__ = [
    "__version__",
    "ResearchAgent",
    "ResearchResult",
    "ResearchContext",
    "ResearchState",
    "TrackerContext",
    "ContextStore",
    "get_response",
    "AgentConfig",
    "ModelConfig",
    "ToolConfigs",
    "Settings",
    "ActionTracker",
    "TokenTracker",
    "estimate_tokens",
    "AnswerAction",
    "SearchAction",
    "ReflectAction",
    "VisitAction",
    "StepAction",
    "Reference",
    "KnowledgeItem",
    "BadAttempt",
    "StepRecord",
    "SearchResult",
    "ReadResponse",
    "parse_decision",
    "save_final_report",
    "SleuthError",
    "ConfigError",
    "BudgetExceededError",
    "DecisionError",
    "AdapterError",
    "SearchError",
    "ReadError",
]
