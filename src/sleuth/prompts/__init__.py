"""Prompt builders and response schemas for the agent and its tools."""

from sleuth.prompts.agent import (
    BEAST_MODE_INSTRUCTIONS,
    build_prompt,
    build_schema,
    permitted_flags,
)

__all__ = [
    "BEAST_MODE_INSTRUCTIONS",
    "build_prompt",
    "build_schema",
    "permitted_flags",
]
