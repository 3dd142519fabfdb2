"""Decision prompt and response schema for the research agent.

build_schema() produces the JSON schema whose ``action`` enum is exactly
the permitted action set for the step; build_prompt() renders the
question, diary, knowledge, failed attempts and action menu.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sleuth.models import BadAttempt, KnowledgeItem


def build_schema(
    allow_reflect: bool,
    allow_read: bool,
    allow_answer: bool,
    allow_search: bool,
    *,
    max_questions: int = 2,
    max_urls: int = 2,
) -> dict:
    """Build the decision schema for the permitted actions."""
    actions: list[str] = []
    properties: dict[str, dict] = {
        "action": {
            "type": "string",
            "enum": actions,
            "description": "Must match exactly one action type",
        },
        "thoughts": {
            "type": "string",
            "description": (
                "Explain why choose this action, what's the thought process "
                "behind choosing this action"
            ),
        },
    }

    if allow_search:
        actions.append("search")
        properties["searchQuery"] = {
            "type": "string",
            "description": (
                "Only required when choosing 'search' action, must be a short, "
                "keyword-based query that BM25, tf-idf based search engines can understand."
            ),
        }

    if allow_answer:
        actions.append("answer")
        properties["answer"] = {
            "type": "string",
            "description": (
                "Only required when choosing 'answer' action, must be the final "
                "answer in natural language"
            ),
        }
        properties["references"] = {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "exactQuote": {
                        "type": "string",
                        "description": "Exact relevant quote from the document",
                    },
                    "url": {
                        "type": "string",
                        "description": "URL of the document; must be directly from the context",
                    },
                },
                "required": ["exactQuote", "url"],
            },
            "description": (
                "Must be an array of references that support the answer, each "
                "reference must contain an exact quote and the URL of the document"
            ),
        }

    if allow_reflect:
        actions.append("reflect")
        properties["questionsToAnswer"] = {
            "type": "array",
            "items": {
                "type": "string",
                "description": (
                    "each question must be a single line, concise and clear. "
                    "not composite or compound, less than 20 words."
                ),
            },
            "description": (
                "List of most important questions to fill the knowledge gaps of "
                "finding the answer to the original question"
            ),
            "maxItems": max_questions,
        }

    if allow_read:
        actions.append("visit")
        properties["URLTargets"] = {
            "type": "array",
            "items": {"type": "string"},
            "maxItems": max_urls,
            "description": (
                f"Must be an array of URLs, choose up the most relevant {max_urls} "
                "URLs to visit"
            ),
        }

    return {
        "type": "object",
        "properties": properties,
        "required": ["action", "thoughts"],
    }


BEAST_MODE_INSTRUCTIONS = """\
**answer**:
- You have gathered enough information to answer the question; they may not be perfect, but this is your very last chance to answer the question.
- Use the most advanced reasoning ability to analyze every detail in the context.
- When uncertain, make educated guesses based on available context and knowledge.
- Responses must be definitive and comprehensive.
- Structure your analysis using MECE (Mutually Exclusive, Collectively Exhaustive) principles.
- Format your answer as a detailed analytical report using this structure:

# Investigation Report

## Executive Summary
[1-2 paragraphs summarizing key findings]

## Key Findings
- Finding 1 [with supporting evidence]
- Finding 2 [with supporting evidence]
- Finding 3 [with supporting evidence]
[etc...]

## Detailed Analysis
### Context Overview
[Background information and context]

### Primary Analysis
[Core analysis of main points]

### Secondary Considerations
[Additional relevant factors]

### Evidence Assessment
- Source 1: [evaluation]
- Source 2: [evaluation]
[etc...]

## Conclusions
[Definitive statements based on analysis]

## Recommendations
- Recommendation 1
- Recommendation 2
[etc...]

## References
- [Source 1]
- [Source 2]
[etc...]

Note: All sections must be comprehensive and backed by evidence from the provided context."""

_FOOTER = """\
Respond exclusively in valid JSON format.

Critical requirements:
- Include exactly ONE action type
- Do not add any keys that are not supported
- Do not include any text, markdown or explanation outside the JSON
- Maintain strict JSON syntax"""


def _format_knowledge(knowledge: Sequence[KnowledgeItem]) -> str:
    items = "\n\n".join(
        f"### Knowledge {i + 1}: {k.question}\n{k.answer}"
        for i, k in enumerate(knowledge)
    )
    return (
        "## Knowledge gathered\n"
        "You have gathered some knowledge that might be useful for answering "
        "the original question. Here is the knowledge you have gathered so far:\n\n"
        f"{items}"
    )


def _format_bad_attempts(bad_context: Sequence[BadAttempt]) -> str:
    attempts = "\n\n".join(
        f"### Attempt {i + 1}\n"
        f"- Question: {c.question}\n"
        f"- Answer: {c.answer}\n"
        f"- Reject Reason: {c.evaluation}\n"
        f"- Actions Recap: {c.recap}\n"
        f"- Actions Blame: {c.blame}"
        for i, c in enumerate(bad_context)
    )
    learned = "\n".join(c.improvement for c in bad_context)
    return (
        "## Unsuccessful Attempts\n"
        "Your have tried the following actions but failed to find the answer "
        f"to the question.\n\n{attempts}\n\n"
        f"## Learned Strategy\n{learned}\n"
    )


def build_prompt(
    question: str,
    *,
    diary: Sequence[str] = (),
    allow_reflect: bool = True,
    allow_answer: bool = True,
    allow_read: bool = True,
    allow_search: bool = True,
    bad_context: Sequence[BadAttempt] = (),
    knowledge: Sequence[KnowledgeItem] = (),
    url_frontier: Mapping[str, str] | None = None,
    beast_mode: bool = False,
    now: datetime | None = None,
) -> str:
    """Render the decision prompt for one step.

    Args:
        question: The question addressed this step.
        diary: Narrative entries of the current attempt.
        allow_*: Which actions are on the menu.
        bad_context: Rejected answers to the original question.
        knowledge: Knowledge items gathered so far.
        url_frontier: Known-but-unvisited URLs, mapped to their titles.
        beast_mode: Replace the menu with the forced final-answer instructions.
        now: Timestamp for the header (defaults to current UTC time).
    """
    timestamp = (now or datetime.now(timezone.utc)).strftime("%a, %d %b %Y %H:%M:%S GMT")
    sections: list[str] = [
        f"Current date: {timestamp}\n\n"
        "You are an advanced AI research analyst specializing in multi-step reasoning. "
        "Using your training data and prior lessons learned, answer the following "
        "question with absolute certainty:\n\n"
        f"## Question\n{question}"
    ]

    if diary:
        sections.append(
            "## Context\nYou have conducted the following actions:\n\n" + "\n".join(diary)
        )

    if knowledge:
        sections.append(_format_knowledge(knowledge))

    if bad_context:
        sections.append(_format_bad_attempts(bad_context))

    actions: list[str] = []

    if url_frontier and allow_read:
        url_list = "\n".join(f'  + "{url}": "{title}"' for url, title in url_frontier.items())
        actions.append(
            "**visit**:\n"
            "- Visit any URLs from below to gather external knowledge, choose the "
            "most relevant URLs that might contain the answer\n"
            f"{url_list}\n"
            "- When you have enough search result in the context and want to deep "
            "dive into specific URLs\n"
            "- It allows you to access the full content behind any URLs"
        )

    if allow_search:
        actions.append(
            "**search**:\n"
            "- Query external sources using a public search engine\n"
            "- Focus on solving one specific aspect of your question\n"
            "- Only give keywords search query, not full sentences"
        )

    if allow_answer:
        reflect_hint = '\n- If any part of the question remains unclear, use "reflect" instead' if allow_reflect else ""
        actions.append(
            "**answer**:\n"
            "- Provide final response only when 100% certain\n"
            "- Responses must be definitive (no ambiguity, uncertainty, or disclaimers)"
            f"{reflect_hint}"
        )

    if beast_mode:
        actions.append(BEAST_MODE_INSTRUCTIONS)

    if allow_reflect:
        actions.append(
            "**reflect**:\n"
            "- Perform critical analysis through hypothetical scenarios or systematic breakdowns\n"
            "- Identify knowledge gaps and formulate essential clarifying questions\n"
            "- Questions must be:\n"
            "  - Original (not variations of existing questions)\n"
            "  - Focused on single concepts\n"
            "  - Under 20 words\n"
            "  - Non-compound/non-complex"
        )

    sections.append(
        "## Action Space\n\nBased on the current context, you must choose one of "
        "the following actions:\n\n" + "\n\n".join(actions)
    )
    sections.append(_FOOTER)
    return "\n\n".join(sections)


def permitted_flags(permitted: Iterable[str]) -> dict[str, bool]:
    """Map a permitted action set to the allow_* keyword arguments."""
    allowed = set(permitted)
    return {
        "allow_reflect": "reflect" in allowed,
        "allow_answer": "answer" in allowed,
        "allow_read": "visit" in allowed,
        "allow_search": "search" in allowed,
    }
