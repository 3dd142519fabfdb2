"""Per-step state snapshots for external observers.

ActionTracker keeps the latest view of the research loop (current
decision, outstanding gaps, bad-attempt count, lifetime step index) and
notifies listeners whenever it changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

ActionListener = Callable[[dict[str, Any]], None]


class ActionTracker:
    """Mergeable snapshot of the loop's externally visible state."""

    def __init__(self) -> None:
        self._state: dict[str, Any] = {
            "this_step": None,
            "gaps": [],
            "bad_attempts": 0,
            "total_step": 0,
        }
        self._listeners: list[ActionListener] = []

    def track_action(self, **fields: Any) -> None:
        """Merge ``fields`` into the snapshot and notify listeners.

        Listener errors are logged and do not interrupt tracking.
        """
        if "gaps" in fields:
            fields["gaps"] = list(fields["gaps"])
        self._state.update(fields)
        snapshot = self.get_state()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.debug("action listener error", exc_info=True)

    def get_state(self) -> dict[str, Any]:
        return dict(self._state)

    def add_listener(self, listener: ActionListener) -> None:
        self._listeners.append(listener)
