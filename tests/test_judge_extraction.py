"""Tests for voicebench.evaluation.judge.extraction - judge reply parsing."""

from __future__ import annotations

import json

import pytest

from voicebench.evaluation.judge.errors import JudgeError, JudgeErrorCode
from voicebench.evaluation.judge.extraction import (
    JudgeScores,
    normalize_score,
    parse_judge_response,
    score_to_percentage,
    strip_code_fences,
)


def _reply(**overrides) -> str:
    payload = {
        "accuracy": 8,
        "helpfulness": 7,
        "naturalness": 9,
        "efficiency": 6,
        "taskCompleted": True,
        "reasoning": "Correct and concise.",
    }
    payload.update(overrides)
    return json.dumps(payload)


class TestParseJudgeResponse:
    def test_valid_reply(self):
        parsed = parse_judge_response(_reply())
        assert parsed.scores == JudgeScores(accuracy=8, helpfulness=7, naturalness=9, efficiency=6)
        assert parsed.task_completed is True
        assert parsed.reasoning == "Correct and concise."

    def test_fenced_reply(self):
        parsed = parse_judge_response(f"```json\n{_reply()}\n```")
        assert parsed.scores.accuracy == 8

    def test_plain_fence(self):
        parsed = parse_judge_response(f"```\n{_reply()}\n```")
        assert parsed.scores.naturalness == 9

    def test_scores_clamped_and_rounded(self):
        parsed = parse_judge_response(_reply(accuracy=13, helpfulness=0, naturalness=7.6, efficiency=-4))
        assert parsed.scores.accuracy == 10
        assert parsed.scores.helpfulness == 1
        assert parsed.scores.naturalness == 8
        assert parsed.scores.efficiency == 1

    def test_invalid_json(self):
        with pytest.raises(JudgeError) as exc_info:
            parse_judge_response("not json at all")
        assert exc_info.value.code == JudgeErrorCode.PARSE_ERROR

    def test_non_object_payload(self):
        with pytest.raises(JudgeError) as exc_info:
            parse_judge_response("[1, 2, 3]")
        assert exc_info.value.code == JudgeErrorCode.PARSE_ERROR

    def test_missing_score(self):
        payload = json.loads(_reply())
        del payload["efficiency"]
        with pytest.raises(JudgeError) as exc_info:
            parse_judge_response(json.dumps(payload))
        assert exc_info.value.code == JudgeErrorCode.PARSE_ERROR
        assert "efficiency" in str(exc_info.value)

    def test_string_score_rejected(self):
        with pytest.raises(JudgeError):
            parse_judge_response(_reply(accuracy="8"))

    def test_non_boolean_task_completed(self):
        with pytest.raises(JudgeError) as exc_info:
            parse_judge_response(_reply(taskCompleted="yes"))
        assert "taskCompleted" in str(exc_info.value)

    def test_missing_reasoning(self):
        payload = json.loads(_reply())
        del payload["reasoning"]
        with pytest.raises(JudgeError) as exc_info:
            parse_judge_response(json.dumps(payload))
        assert exc_info.value.code == JudgeErrorCode.PARSE_ERROR


class TestNormalizeScore:
    def test_in_range_integer(self):
        assert normalize_score(5, "accuracy") == 5

    def test_infinities_clamp(self):
        assert normalize_score(float("inf"), "accuracy") == 10
        assert normalize_score(float("-inf"), "accuracy") == 1

    def test_nan_rejected(self):
        with pytest.raises(JudgeError):
            normalize_score(float("nan"), "accuracy")

    def test_bool_rejected(self):
        with pytest.raises(JudgeError):
            normalize_score(True, "accuracy")

    def test_none_rejected(self):
        with pytest.raises(JudgeError):
            normalize_score(None, "accuracy")


class TestPercentages:
    def test_endpoints(self):
        assert score_to_percentage(1) == 0
        assert score_to_percentage(10) == 100

    def test_midpoints(self):
        assert score_to_percentage(5) == 44
        assert score_to_percentage(7) == 67

    def test_as_percentages(self):
        scores = JudgeScores(accuracy=10, helpfulness=1, naturalness=7, efficiency=5)
        assert scores.as_percentages() == {
            "accuracy": 100,
            "helpfulness": 0,
            "naturalness": 67,
            "efficiency": 44,
        }


class TestStripCodeFences:
    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'
