"""Per-step debug artifacts.

After every step the prompt and cumulative snapshots of the transcript,
keyword history, question history and knowledge base are written to a
directory. Failures are logged and never affect the research loop.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sleuth.agent.state import ResearchContext

logger = logging.getLogger(__name__)


class ContextStore:
    """Writes ``prompt-<step>.txt`` plus JSON snapshots into ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def store(self, prompt: str, ctx: ResearchContext, step: int) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            (self.directory / f"prompt-{step}.txt").write_text(prompt, encoding="utf-8")
            self._dump("context.json", [r.to_dict() for r in ctx.transcript])
            self._dump("queries.json", ctx.all_keywords)
            self._dump("questions.json", ctx.all_questions)
            self._dump("knowledge.json", [k.model_dump() for k in ctx.knowledge])
        except (OSError, TypeError, ValueError):
            logger.warning("Context storage failed", exc_info=True)

    def _dump(self, name: str, data: object) -> None:
        text = json.dumps(data, indent=2, ensure_ascii=False)
        (self.directory / name).write_text(text, encoding="utf-8")
