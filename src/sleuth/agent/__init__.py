"""Research loop: state, the ResearchAgent driver, and per-step artifacts."""

from sleuth.agent.loop import ResearchAgent, ResearchResult, get_response
from sleuth.agent.state import (
    ActionPermissions,
    ResearchContext,
    ResearchState,
    TrackerContext,
)
from sleuth.agent.storage import ContextStore

__all__ = [
    "ResearchAgent",
    "ResearchResult",
    "get_response",
    "ResearchContext",
    "ResearchState",
    "ActionPermissions",
    "TrackerContext",
    "ContextStore",
]
