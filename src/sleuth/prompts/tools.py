"""Prompts and response schemas for the oracle-backed tools.

Each tool has a builder returning the full user prompt and a module-level
JSON schema for its structured response:

- **evaluator** -- is an answer definitive?
- **dedup** -- which candidate queries are semantically new?
- **error analyzer** -- why did an attempt fail, and what to change?
- **query rewriter** -- turn a free-text search into keyword queries.
- **translator** -- plain-text translation of the final report.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

EVALUATOR_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "is_definitive": {
            "type": "boolean",
            "description": (
                "Whether the answer provides a definitive response without "
                "uncertainty or 'I don't know' type statements"
            ),
        },
        "reasoning": {
            "type": "string",
            "description": "Detailed explanation using MECE analysis and structured markdown format",
        },
    },
    "required": ["is_definitive", "reasoning"],
}

_EVALUATOR_EXAMPLES = """\
Examples:

Question: "What are the system requirements for Python 3.9?"
Answer: "I'm not entirely sure, but I think you need a computer with RAM."
Evaluation: {
  "is_definitive": false,
  "reasoning": "# Answer Analysis\\n\\n## Uncertainty Indicators\\n- Contains phrase 'not entirely sure'\\n- Uses tentative language 'I think'\\n\\n## Content Assessment\\n- Provides vague, non-specific requirements\\n- Lacks concrete technical specifications\\n\\n## Conclusion\\nThe answer fails to provide definitive information due to explicit uncertainty and lack of specific details."
}

Question: "What are the system requirements for Python 3.9?"
Answer: "Python 3.9 requires Windows 7 or later, macOS 10.11 or later, or Linux."
Evaluation: {
  "is_definitive": true,
  "reasoning": "# Answer Analysis\\n\\n## Certainty Indicators\\n- Uses clear, declarative statements\\n- No hedging or uncertainty markers\\n\\n## Content Assessment\\n- Specifies exact OS versions\\n- Covers all major platforms\\n- Provides concrete requirements\\n\\n## Conclusion\\nThe answer is definitive, providing clear and specific system requirements without ambiguity."
}

Question: "What is the Twitter account of Jina AI's founder?"
Answer: "The provided text does not contain information about Jina AI founder's Twitter account."
Evaluation: {
  "is_definitive": false,
  "reasoning": "# Answer Analysis\\n\\n## Response Type\\n- Indicates information absence\\n- States explicit knowledge gap\\n\\n## Content Assessment\\n- No actual answer provided\\n- Acknowledges information limitation\\n\\n## Conclusion\\nThe response is non-definitive as it explicitly states an inability to provide the requested information."
}"""


def build_evaluator_prompt(question: str, answer: str) -> str:
    return (
        "You are an expert evaluator specializing in analyzing the definitiveness "
        "and completeness of answers. Analyze whether the given answer provides a "
        "definitive response.\n\n"
        "Core Evaluation Criteria:\n"
        "1. Definitiveness:\n"
        '   - Must identify any uncertainty markers like "I think", "maybe", "probably"\n'
        '   - Must flag any "I don\'t know" or "information not available" statements\n'
        "   - Must detect any hedging or ambiguous language\n\n"
        "2. Analysis Requirements:\n"
        "   - Use MECE (Mutually Exclusive, Collectively Exhaustive) principles\n"
        "   - Break down analysis into clear categories\n"
        "   - Consider all relevant aspects without overlap\n"
        "   - Provide comprehensive but structured evaluation\n\n"
        "3. Output Format:\n"
        "   - Use markdown for structured presentation\n"
        "   - Include clear section headers\n"
        "   - Use bullet points for detailed breakdowns\n"
        "   - Maintain professional analytical tone\n\n"
        f"{_EVALUATOR_EXAMPLES}\n\n"
        "Now, evaluate this combination:\n"
        f"Question: {json.dumps(question, ensure_ascii=False)}\n"
        f"Answer: {json.dumps(answer, ensure_ascii=False)}"
    )


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------

DEDUP_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "think": {
            "type": "string",
            "description": "Strategic reasoning about the overall deduplication approach",
        },
        "unique_queries": {
            "type": "array",
            "items": {
                "type": "string",
                "description": "Unique query that passed the deduplication process, must be less than 30 characters",
            },
            "description": "Array of semantically unique queries",
        },
    },
    "required": ["think", "unique_queries"],
}


def build_dedup_prompt(new_queries: Sequence[str], existing_queries: Sequence[str]) -> str:
    return (
        "You are an expert in semantic similarity analysis. Given a set of queries "
        "(setA) and a set of queries (setB)\n\n"
        "Core Rules:\n"
        "1. Consider semantic meaning: Queries with different wording but the same "
        "meaning are duplicates\n"
        "2. Consider intent: Queries that would return the same search results are "
        "duplicates\n"
        "3. Keep the query from setA that is most specific when several are duplicates "
        "of each other\n"
        "4. Remove every query from setA that duplicates any query in setB\n"
        "5. Return the surviving queries of setA exactly as written, in their "
        "original order\n\n"
        "Examples:\n\n"
        "SetA: [\"how to install python\", \"python installation guide\", "
        "\"python 3.9 install\"]\n"
        "SetB: [\"installing python\"]\n"
        "Output: {\"think\": \"The first two are generic installation queries "
        "covered by setB. The version-specific query is new.\", "
        "\"unique_queries\": [\"python 3.9 install\"]}\n\n"
        "Now, run the deduplication:\n"
        f"SetA: {json.dumps(list(new_queries), ensure_ascii=False)}\n"
        f"SetB: {json.dumps(list(existing_queries), ensure_ascii=False)}"
    )


# ---------------------------------------------------------------------------
# Error analysis
# ---------------------------------------------------------------------------

ERROR_ANALYZER_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "recap": {
            "type": "string",
            "description": "Recap of the actions taken and the steps conducted",
        },
        "blame": {
            "type": "string",
            "description": "Which action or the step was the root cause of the answer rejection",
        },
        "improvement": {
            "type": "string",
            "description": "Suggested key improvement for the next iteration, do not use bullet points, be concise and hot-take vibe.",
        },
    },
    "required": ["recap", "blame", "improvement"],
}


def build_error_analyzer_prompt(diary: Sequence[str]) -> str:
    steps = "\n".join(diary)
    return (
        "You are an expert at analyzing search and reasoning processes. Your task "
        "is to analyze the given sequence of steps and identify what went wrong in "
        "the search process.\n\n"
        "Focus on:\n"
        "1. Whether search queries were too generic or too specific\n"
        "2. Whether the agent repeated searches or visits without new information\n"
        "3. Whether URLs with promising content were visited at all\n"
        "4. Whether the final answer was supported by the gathered knowledge\n\n"
        "Provide:\n"
        "- recap: a short chronological recap of the key actions and what they found\n"
        "- blame: the specific step or pattern that caused the rejected answer\n"
        "- improvement: one concise, actionable change for the next attempt\n\n"
        f"Review the steps below:\n\n{steps}"
    )


# ---------------------------------------------------------------------------
# Query rewriting
# ---------------------------------------------------------------------------

QUERY_REWRITER_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "think": {
            "type": "string",
            "description": "Strategic reasoning about query complexity and search approach",
        },
        "queries": {
            "type": "array",
            "items": {
                "type": "string",
                "description": "Search query, must be less than 30 characters",
            },
            "description": "Array of search queries, orthogonal to each other",
            "minItems": 1,
            "maxItems": 3,
        },
    },
    "required": ["think", "queries"],
}


def build_query_rewriter_prompt(search_query: str, thoughts: str) -> str:
    return (
        "You are an expert Information Retrieval Assistant. Transform user queries "
        "into precise keyword combinations with strategic reasoning and appropriate "
        "search operators.\n\n"
        "Core Rules:\n"
        "1. Always return keywords in array format, even for single queries\n"
        "2. Keep keywords minimal: 2-4 words preferred\n"
        "3. Split queries only when necessary for distinctly different aspects\n"
        "4. Preserve crucial qualifiers while removing fluff words\n"
        "5. Make the query resistant to SEO manipulation\n"
        "6. Return at most 3 queries\n\n"
        "Available Operators:\n"
        '- "phrase" : exact match for phrases\n'
        "- +term : must include term\n"
        "- -term : exclude term\n"
        "- filetype:pdf/doc : specific file type\n"
        "- site:example.com : limit to specific site\n\n"
        "Example:\n"
        'Input Query: "How does JSON schema validation differ between Python and TypeScript?"\n'
        'Output: {"think": "Two languages are compared; search each separately.", '
        '"queries": ["json schema python", "json schema typescript"]}\n\n'
        f"Now, process this query:\nInput Query: {search_query}\n"
        f"Intention: {thoughts}"
    )


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


def build_translation_prompt(text: str, language: str) -> str:
    return (
        f"Translate the following markdown report into {language}. Preserve the "
        "markdown structure, headings, links and URLs exactly. Output only the "
        f"translation.\n\n{text}"
    )
