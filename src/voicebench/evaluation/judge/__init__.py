"""LLM-as-judge scoring: prompts, reply parsing, and the OpenAI judge service."""

from voicebench.evaluation.judge.errors import JudgeError, JudgeErrorCode
from voicebench.evaluation.judge.extraction import (
    JudgeScores,
    normalize_score,
    parse_judge_response,
    score_to_percentage,
)
from voicebench.evaluation.judge.prompt import build_evaluation_prompt, get_scenario_prompt
from voicebench.evaluation.judge.service import (
    BaseJudge,
    JudgeConfig,
    JudgeInput,
    JudgeOutput,
    JudgeService,
)

__all__ = [
    "BaseJudge",
    "JudgeConfig",
    "JudgeError",
    "JudgeErrorCode",
    "JudgeInput",
    "JudgeOutput",
    "JudgeScores",
    "JudgeService",
    "build_evaluation_prompt",
    "get_scenario_prompt",
    "normalize_score",
    "parse_judge_response",
    "score_to_percentage",
]
