"""Saving the final answer as a markdown report.

The file name is ``<YYYY-MM-DD-HHMM>-<title>.md``, where the title is the
first ``# `` heading of the report with whitespace runs replaced by
underscores. An optional translated copy is written next to it with the
language appended to the name.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from sleuth.config import ToolConfigs
from sleuth.prompts.tools import build_translation_prompt

if TYPE_CHECKING:
    from sleuth.config import ModelConfig
    from sleuth.llm.generator import ObjectGenerator
    from sleuth.tokens import TokenTracker

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "report"


@dataclass(frozen=True)
class SavedReport:
    """Paths written by save_final_report()."""

    path: Path
    translated_path: Path | None = None


def get_timestamp(now: datetime | None = None) -> str:
    """Local time formatted as ``YYYY-MM-DD-HHMM``."""
    return (now or datetime.now()).strftime("%Y-%m-%d-%H%M")


def extract_title(report: str) -> str:
    """Return the first ``# `` heading, file-name safe, or ``report``."""
    for line in report.split("\n"):
        if line.startswith("# "):
            title = re.sub(r"\s+", "_", line[2:].strip())
            return title or DEFAULT_TITLE
    return DEFAULT_TITLE


def save_final_report(
    answer: str,
    output_dir: str | Path = "outputs",
    translate_to: str | None = None,
    generator: ObjectGenerator | None = None,
    *,
    tracker: TokenTracker | None = None,
    config: ModelConfig | None = None,
    now: datetime | None = None,
) -> SavedReport:
    """Write ``answer`` to ``output_dir`` and optionally a translation.

    Args:
        answer: Markdown report text.
        output_dir: Target directory (created if missing).
        translate_to: Language name for a translated copy, e.g. ``"Japanese"``.
        generator: Required when ``translate_to`` is set.
        tracker: Receives the translation's token cost under ``translator``.

    Raises:
        ValueError: If a translation is requested without a generator.
    """
    if translate_to and generator is None:
        raise ValueError("A generator is required to translate the report")

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stem = f"{get_timestamp(now)}-{extract_title(answer)}"

    path = directory / f"{stem}.md"
    path.write_text(answer, encoding="utf-8")
    logger.info("Report saved to %s", path)

    translated_path = None
    if translate_to:
        translated = generator.generate_text(
            config or ToolConfigs().translator,
            build_translation_prompt(answer, translate_to),
            tool="translator",
            tracker=tracker,
        )
        suffix = re.sub(r"\s+", "_", translate_to.strip().lower())
        translated_path = directory / f"{stem}-{suffix}.md"
        translated_path.write_text(translated, encoding="utf-8")
        logger.info("Translated report saved to %s", translated_path)

    return SavedReport(path=path, translated_path=translated_path)
