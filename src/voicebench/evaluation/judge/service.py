"""LLM-as-judge scoring of voice assistant responses.

JudgeService sends the rubric and the response transcript to an OpenAI
chat model in JSON mode, validates the reply, and maps the 1-10 scores
onto 0-100. Transient failures are retried through a RetryPolicy whose
backoff depends on the failure kind.
"""

from __future__ import annotations

import asyncio
import os
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

import openai
import structlog

from voicebench.evaluation.judge.errors import JudgeError, JudgeErrorCode
from voicebench.evaluation.judge.extraction import (
    JudgeScores,
    ParsedJudgement,
    parse_judge_response,
)
from voicebench.evaluation.judge.prompt import JUDGE_SYSTEM_PROMPT, build_evaluation_prompt
from voicebench.execution.retry import (
    RetryPolicy,
    exponential_jitter,
    is_connection_error,
    is_rate_limited,
    linear,
)

logger = structlog.get_logger()

PARSE_RETRY_DELAY_SECONDS = 0.5


@dataclass
class JudgeConfig:
    """Judge model settings.

    api_key falls back to the OPENAI_API_KEY environment variable.
    """

    model: str = "gpt-4o"
    timeout_ms: int = 60000
    temperature: float = 0.0
    max_retries: int = 3
    api_key: str | None = None


@dataclass(frozen=True)
class JudgeInput:
    """One response to grade."""

    scenario_type: str
    scenario_name: str
    user_prompt: str
    expected_outcome: str
    ai_response: str


@dataclass(frozen=True)
class JudgeOutput:
    """Validated judge verdict.

    Attributes:
        scores: Raw 1-10 scores.
        percentages: The same scores mapped onto 0-100.
        task_completed: Whether the judge considered the task done.
        reasoning: The judge's explanation.
        model: Judge model name.
        evaluation_time_ms: Wall time across all attempts.
    """

    scores: JudgeScores
    percentages: dict[str, int]
    task_completed: bool
    reasoning: str
    model: str
    evaluation_time_ms: float
    retries_used: int = 0


class BaseJudge(ABC):
    """Contract the pair executor depends on."""

    @abstractmethod
    async def evaluate(self, judge_input: JudgeInput) -> JudgeOutput:
        """Grade one response.

        Raises:
            JudgeError: When no valid verdict could be obtained.
        """
        ...


def _judge_retryable(exc: Exception) -> bool:
    if isinstance(exc, JudgeError):
        return exc.code == JudgeErrorCode.PARSE_ERROR
    return isinstance(exc, openai.APIError) or is_connection_error(exc)


def _judge_backoff(
    rate_limit_backoff: Callable[[int, Exception], float],
) -> Callable[[int, Exception], float]:
    other_backoff = linear(1.0)

    def backoff(attempt: int, exc: Exception) -> float:
        if isinstance(exc, JudgeError):
            return PARSE_RETRY_DELAY_SECONDS
        if is_rate_limited(exc):
            return rate_limit_backoff(attempt, exc)
        return other_backoff(attempt, exc)

    return backoff


def _to_judge_error(exc: Exception) -> JudgeError:
    """Translate a final, unretried failure into a JudgeError."""
    if isinstance(exc, JudgeError):
        return exc
    if is_rate_limited(exc):
        return JudgeError("Rate limited by judge API", JudgeErrorCode.RATE_LIMITED, cause=exc)
    if is_connection_error(exc):
        return JudgeError("Request to judge API timed out", JudgeErrorCode.TIMEOUT, cause=exc)
    return JudgeError(f"Judge API error: {exc}", JudgeErrorCode.API_ERROR, cause=exc)


class JudgeService(BaseJudge):
    """OpenAI-backed judge.

    The client is created on first use so a missing API key only fails
    the evaluations that need it.
    """

    def __init__(
        self,
        config: JudgeConfig | None = None,
        client: Any | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config or JudgeConfig()
        self._client = client
        self._sleep = sleep
        self._retry = RetryPolicy(
            max_attempts=max(1, self._config.max_retries),
            backoff=_judge_backoff(exponential_jitter(base=1.0, cap=30.0)),
            is_retryable=_judge_retryable,
            sleep=sleep,
            name="judge",
        )

    @property
    def model(self) -> str:
        return self._config.model

    def _get_client(self) -> Any:
        if self._client is None:
            api_key = self._config.api_key or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise JudgeError(
                    "OpenAI API key is required for the judge. Set OPENAI_API_KEY "
                    "or configure judge.api_key.",
                    JudgeErrorCode.INVALID_INPUT,
                )
            # Retries are handled by RetryPolicy, not the SDK
            self._client = openai.AsyncOpenAI(
                api_key=api_key,
                timeout=self._config.timeout_ms / 1000,
                max_retries=0,
            )
        return self._client

    async def _request(self, client: Any, user_prompt: str) -> ParsedJudgement:
        response = await client.chat.completions.create(
            model=self._config.model,
            temperature=self._config.temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": JUDGE_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise JudgeError("Judge returned an empty response", JudgeErrorCode.INVALID_RESPONSE)
        return parse_judge_response(content)

    async def evaluate(self, judge_input: JudgeInput) -> JudgeOutput:
        """Grade one response with the configured judge model.

        Args:
            judge_input: Scenario context and the response transcript.

        Returns:
            JudgeOutput with raw and percentage scores.

        Raises:
            JudgeError: INVALID_INPUT for an empty prompt, empty response
                or missing API key; otherwise the code matching the
                final failure.
        """
        if not judge_input.ai_response or not judge_input.ai_response.strip():
            raise JudgeError("AI response is required for evaluation", JudgeErrorCode.INVALID_INPUT)
        if not judge_input.user_prompt or not judge_input.user_prompt.strip():
            raise JudgeError("User prompt is required for evaluation", JudgeErrorCode.INVALID_INPUT)

        client = self._get_client()
        user_prompt = build_evaluation_prompt(
            scenario_type=judge_input.scenario_type,
            scenario_name=judge_input.scenario_name,
            user_prompt=judge_input.user_prompt,
            expected_outcome=judge_input.expected_outcome,
            ai_response=judge_input.ai_response,
        )

        start = time.perf_counter()
        try:
            parsed, retries_used, _ = await self._retry.run(
                lambda: self._request(client, user_prompt)
            )
        except Exception as exc:
            error = _to_judge_error(exc)
            logger.warning(
                "judge.failed",
                scenario=judge_input.scenario_name,
                code=error.code.value,
                error=str(error),
            )
            if error is exc:
                raise
            raise error from exc

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "judge.completed",
            scenario=judge_input.scenario_name,
            model=self._config.model,
            evaluation_time_ms=round(elapsed_ms, 1),
            retries=retries_used,
        )
        return JudgeOutput(
            scores=parsed.scores,
            percentages=parsed.scores.as_percentages(),
            task_completed=parsed.task_completed,
            reasoning=parsed.reasoning,
            model=self._config.model,
            evaluation_time_ms=elapsed_ms,
            retries_used=retries_used,
        )

    async def evaluate_batch(
        self,
        inputs: Sequence[JudgeInput],
        delay: float = 1.0,
    ) -> list[JudgeOutput | JudgeError]:
        """Evaluate inputs one after another.

        Failures are collected in place of outputs, so the returned list
        lines up with inputs.

        Args:
            inputs: Responses to grade.
            delay: Seconds to wait between consecutive evaluations.
        """
        results: list[JudgeOutput | JudgeError] = []
        for index, judge_input in enumerate(inputs):
            if index > 0 and delay > 0:
                await self._sleep(delay)
            try:
                results.append(await self.evaluate(judge_input))
            except JudgeError as exc:
                results.append(exc)
        return results

