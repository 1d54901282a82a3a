"""Test-suggestion prompts and model-response parsing.

Builds the prompt that asks a model to propose one test per uncovered added
line, and turns the model's JSON answer back into ``TestSuggestion`` records.
Nothing here talks to a model; callers own the request.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from greenline.core.diff_walker import AddedLine
from greenline.core.exceptions import InvalidArgumentError, SuggestionParseError

logger = logging.getLogger(__name__)

REQUIRED_SUGGESTION_KEYS: tuple[str, ...] = ("file", "line", "original_code", "suggested_test")

_OPENING_FENCE_RE = re.compile(r"^```(?:json)?\s*")
_CLOSING_FENCE_RE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class TestSuggestion:
    """One suggested test for one uncovered line."""

    __test__ = False  # not a pytest class

    file: str
    line: int
    original_code: str
    suggested_test: str


# =============================================================================
#  Prompt building
# =============================================================================

_PROMPT_TEMPLATE = """\
You are an AI assistant specialized in writing {language} tests using the {framework} framework.
Your task is to analyze the provided {language} code snippets, which represent lines recently ADDED to the codebase and are currently NOT covered by any tests. Suggest a basic {framework} test case for EACH snippet.

Code Snippets to Analyze:
{snippets}

---

Instructions for your response:
1. Review EACH code snippet provided above.
2. For EACH snippet, suggest a simple, focused {framework} test case that would cover the provided line of code.
   - Assume the code exists within a standard module structure. Focus on testing the logic of the given line.
   - If the line is part of a larger function, the test should aim to execute that specific line.
   - Keep setup minimal.
   - The test should be runnable {framework} code. Include necessary imports if obvious and required for the snippet.
3. Respond ONLY with a valid JSON list ([...]). Do NOT include any text, markdown formatting (like ```json), or explanations before or after the JSON list.
4. The JSON list should contain one object for EACH snippet you provide a suggestion for.
5. Each JSON object MUST include the following keys:
   - "file": The exact file path provided for the snippet.
   - "line": The exact line number provided for the snippet.
   - "original_code": The exact code snippet provided (use the trimmed version as shown in the input).
   - "suggested_test": A string containing the suggested test case code. Use newline characters (`\\n`) for line breaks within the test code string.
6. If you cannot reasonably suggest a test for a specific snippet (e.g., a closing keyword, a comment, or a purely declarative line), you MAY omit an object for that snippet in the response list.
7. Ensure the entire response is a single, valid JSON list.

JSON Response:
"""


def _render_snippet(added: AddedLine, language: str) -> str:
    return (
        f"File: {added.file}\n"
        f"Line: {added.line}\n"
        f"Uncovered Code:\n"
        f"```{language}\n"
        f"{added.code.strip()}\n"
        f"```\n"
    )


def build_suggestion_prompt(
    chunk: list[AddedLine],
    language: str = "elixir",
    framework: str = "ExUnit",
) -> str:
    """Build the test-suggestion prompt for one chunk of uncovered lines.

    Raises:
        InvalidArgumentError: If ``chunk`` is not a list of ``AddedLine``.
    """
    if not isinstance(chunk, list) or not all(isinstance(item, AddedLine) for item in chunk):
        raise InvalidArgumentError("build_suggestion_prompt expects a list of AddedLine")

    snippets = "\n---\n".join(_render_snippet(added, language) for added in chunk)
    return _PROMPT_TEMPLATE.format(language=language, framework=framework, snippets=snippets)


# =============================================================================
#  Response parsing
# =============================================================================


def clean_model_response(text: str) -> str:
    """Strip whitespace and a surrounding Markdown code fence."""
    cleaned = _OPENING_FENCE_RE.sub("", text.strip())
    cleaned = _CLOSING_FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def parse_suggestions(text: str) -> list[TestSuggestion]:
    """Parse a model's JSON answer into ``TestSuggestion`` records.

    Items that are not objects or lack a required key are skipped with a
    warning; the rest are returned in response order.

    Raises:
        SuggestionParseError: If the response is not a JSON list.
    """
    cleaned = clean_model_response(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise SuggestionParseError(f"Model response is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise SuggestionParseError(
            f"Model response must be a JSON list, got {type(data).__name__}"
        )

    suggestions: list[TestSuggestion] = []
    for item in data:
        if (
            not isinstance(item, dict)
            or not all(key in item for key in REQUIRED_SUGGESTION_KEYS)
            or not isinstance(item["line"], int)
            or isinstance(item["line"], bool)
        ):
            logger.warning("Skipping suggestion with missing or invalid format: %r", item)
            continue
        suggestions.append(
            TestSuggestion(
                file=str(item["file"]),
                line=item["line"],
                original_code=str(item["original_code"]),
                suggested_test=str(item["suggested_test"]),
            )
        )

    return suggestions


def build_suggestion_body(
    original_code: str,
    suggested_test: str,
    language: str = "elixir",
) -> str:
    """Render the Markdown body of a review comment carrying a suggestion."""
    return (
        "🤖 **AI Test Suggestion**\n"
        "\n"
        f"```{language}\n"
        f"{original_code}\n"
        "```\n"
        "\n"
        "**Test suggestion:**\n"
        f"```{language}\n"
        f"{suggested_test}\n"
        "```\n"
    )
