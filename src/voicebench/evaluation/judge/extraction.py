"""Parse and validate the judge's JSON reply.

The judge is asked for JSON-only output, but models still wrap replies
in markdown fences now and then, so fences are stripped before parsing.
Every field is type-checked; scores are rounded and clamped to [1, 10].
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass

from voicebench.evaluation.judge.errors import JudgeError, JudgeErrorCode
from voicebench.evaluation.judge.prompt import SCORE_FIELDS

MIN_SCORE = 1
MAX_SCORE = 10


@dataclass(frozen=True)
class JudgeScores:
    """Validated judge scores on the 1-10 scale."""

    accuracy: int
    helpfulness: int
    naturalness: int
    efficiency: int

    def as_percentages(self) -> dict[str, int]:
        """Return each score mapped onto 0-100."""
        return {name: score_to_percentage(getattr(self, name)) for name in SCORE_FIELDS}


@dataclass(frozen=True)
class ParsedJudgement:
    """Everything extracted from one judge reply."""

    scores: JudgeScores
    task_completed: bool
    reasoning: str


def strip_code_fences(content: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    text = content.strip()
    if text.startswith("```json"):
        text = text[len("```json") :]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def normalize_score(value: object, field: str) -> int:
    """Round a raw score to an integer and clamp it into [1, 10].

    Raises:
        JudgeError: PARSE_ERROR if value is not a finite real number.
            Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise JudgeError(
            f"Invalid {field} score: expected number, got {type(value).__name__}",
            JudgeErrorCode.PARSE_ERROR,
        )
    if math.isinf(value):
        return MAX_SCORE if value > 0 else MIN_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, round(value)))


def score_to_percentage(score: int) -> int:
    """Map a 1-10 score to 0-100 (1 -> 0, 10 -> 100)."""
    return round((score - 1) / 9 * 100)


def parse_judge_response(content: str) -> ParsedJudgement:
    """Parse a judge reply into validated scores.

    Args:
        content: Raw message content returned by the judge model.

    Returns:
        ParsedJudgement with clamped scores, completion flag and reasoning.

    Raises:
        JudgeError: PARSE_ERROR for invalid JSON, a non-object payload,
            or any field of the wrong type.
    """
    try:
        parsed = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise JudgeError(
            f"Failed to parse judge response as JSON: {exc}",
            JudgeErrorCode.PARSE_ERROR,
            cause=exc,
        ) from exc

    if not isinstance(parsed, dict):
        raise JudgeError("Judge response is not a JSON object", JudgeErrorCode.PARSE_ERROR)

    scores = JudgeScores(
        **{name: normalize_score(parsed.get(name), name) for name in SCORE_FIELDS}
    )

    task_completed = parsed.get("taskCompleted")
    if not isinstance(task_completed, bool):
        raise JudgeError(
            f"Invalid taskCompleted: expected boolean, got {type(task_completed).__name__}",
            JudgeErrorCode.PARSE_ERROR,
        )

    reasoning = parsed.get("reasoning")
    if not isinstance(reasoning, str):
        raise JudgeError(
            f"Invalid reasoning: expected string, got {type(reasoning).__name__}",
            JudgeErrorCode.PARSE_ERROR,
        )

    return ParsedJudgement(scores=scores, task_completed=task_completed, reasoning=reasoning)
