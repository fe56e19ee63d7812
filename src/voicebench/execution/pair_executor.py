"""PairExecutor: evaluate one (scenario, provider) pair end to end.

Loads the records, calls the provider adapter under a per-attempt
timeout with bounded retries, optionally saves the response audio,
resolves a transcript, scores it (WER + judge), and inserts exactly one
EvalResult row. Any collaborator failure becomes an error row instead
of propagating; only store failures escape.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from voicebench.adapters.base import (
    AdapterOptions,
    AudioPrompt,
    BaseAdapter,
    ProviderError,
    ProviderErrorCode,
    ProviderResponse,
)
from voicebench.adapters.registry import AdapterRegistry
from voicebench.evaluation.judge.service import BaseJudge, JudgeInput
from voicebench.evaluation.wer import calculate_wer
from voicebench.execution.audio import load_prompt_audio, save_response_audio
from voicebench.execution.latency import resolve_latency
from voicebench.execution.retry import RetryPolicy, linear
from voicebench.models.run import ERROR_PREFIX, EvalResult
from voicebench.models.scenario import ProviderRecord, Scenario
from voicebench.storage.json_store import DuplicateResultError, RunStore, new_id
from voicebench.transcription.base import BaseTranscriber

logger = structlog.get_logger()

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful voice assistant. Respond naturally and conversationally."
)


@dataclass(frozen=True)
class PairOutcome:
    """How a pair settled.

    result is None when another writer had already recorded the pair
    (duplicate is then True).
    """

    scenario_id: str
    provider_id: str
    result: EvalResult | None
    failed: bool = False
    duplicate: bool = False


def _provider_retryable(exc: Exception) -> bool:
    return isinstance(exc, ProviderError) and exc.retryable


class PairExecutor:
    """Runs single pairs and records their outcome in the store.

    Args:
        store: Result and record persistence.
        registry: Resolves provider types to adapter factories.
        judge: Grades transcripts.
        transcriber: Used when the provider returns no transcript;
            None disables the fallback.
        timeout_ms: Per-attempt provider timeout.
        retry_attempts: Extra attempts on retryable provider errors.
        save_audio: Persist response audio under the store's audio dir.
        prompt_audio_root: Base for relative prompt_audio_path values.
        sleep: Backoff sleep, replaced in tests.
        clock: Seconds clock used for measured latency.
    """

    def __init__(
        self,
        store: RunStore,
        registry: AdapterRegistry,
        judge: BaseJudge,
        transcriber: BaseTranscriber | None = None,
        timeout_ms: int = 30000,
        retry_attempts: int = 1,
        save_audio: bool = True,
        prompt_audio_root: Path | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._store = store
        self._registry = registry
        self._judge = judge
        self._transcriber = transcriber
        self._timeout_ms = timeout_ms
        self._retry_attempts = retry_attempts
        self._save_audio = save_audio
        self._prompt_audio_root = prompt_audio_root
        self._clock = clock
        self._retry = RetryPolicy(
            max_attempts=1 + max(0, retry_attempts),
            backoff=linear(1.0),
            is_retryable=_provider_retryable,
            sleep=sleep,
            name="provider",
        )

    async def execute(self, run_id: str, scenario_id: str, provider_id: str) -> PairOutcome:
        """Evaluate one pair and insert its result row.

        Returns:
            PairOutcome describing the inserted (or pre-existing) row.

        Raises:
            OSError: If the result row itself cannot be written.
        """
        log = logger.bind(run_id=run_id, scenario_id=scenario_id, provider_id=provider_id)
        try:
            result = await self._evaluate(run_id, scenario_id, provider_id)
            failed = False
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            log.warning("pair.failed", error=message, error_type=type(exc).__name__)
            result = self._error_row(run_id, scenario_id, provider_id, message)
            failed = True

        try:
            self._store.insert_result(result)
        except DuplicateResultError:
            log.info("pair.duplicate")
            return PairOutcome(scenario_id, provider_id, None, duplicate=True)

        if not failed:
            log.info("pair.completed", wer=result.wer, total_ms=result.total_ms)
        return PairOutcome(scenario_id, provider_id, result, failed=failed)

    # -- steps --

    async def _evaluate(self, run_id: str, scenario_id: str, provider_id: str) -> EvalResult:
        provider = self._store.load_provider(provider_id)
        scenario = self._store.load_scenario(scenario_id)

        adapter = self._build_adapter(provider)
        prompt = self._build_prompt(scenario)

        (response, measured_ms), retries_used, _ = await self._retry.run(
            lambda: self._call_provider(adapter, prompt)
        )
        if retries_used:
            logger.info("provider.retried", provider_id=provider_id, retries=retries_used)
        ttfb_ms, total_ms = resolve_latency(response, measured_ms)

        audio_path: str | None = None
        if self._save_audio and response.audio:
            saved = save_response_audio(
                self._store.audio_dir,
                run_id,
                scenario.id,
                provider.id,
                response.audio,
                response.mime_type,
            )
            audio_path = str(saved)

        transcript = await self._resolve_transcript(response)

        wer: float | None = None
        percentages: dict[str, int] = {}
        reasoning: str | None = None
        task_completed: bool | None = None
        if transcript:
            wer = calculate_wer(transcript, scenario.expected_outcome).wer
            verdict = await self._judge.evaluate(
                JudgeInput(
                    scenario_type=scenario.type.value,
                    scenario_name=scenario.name,
                    user_prompt=scenario.prompt,
                    expected_outcome=scenario.expected_outcome,
                    ai_response=transcript,
                )
            )
            percentages = verdict.percentages
            reasoning = verdict.reasoning
            task_completed = verdict.task_completed

        return EvalResult(
            id=new_id(),
            run_id=run_id,
            scenario_id=scenario.id,
            provider_id=provider.id,
            audio_path=audio_path,
            transcript=transcript,
            ttfb_ms=ttfb_ms,
            total_ms=total_ms,
            wer=wer,
            accuracy_score=percentages.get("accuracy"),
            helpfulness_score=percentages.get("helpfulness"),
            naturalness_score=percentages.get("naturalness"),
            efficiency_score=percentages.get("efficiency"),
            judge_reasoning=reasoning,
            task_completed=task_completed,
        )

    def _build_adapter(self, provider: ProviderRecord) -> BaseAdapter:
        options = AdapterOptions(
            config=dict(provider.config),
            timeout_ms=self._timeout_ms,
            retry_attempts=self._retry_attempts,
        )
        return self._registry.create(provider.type, options)

    def _build_prompt(self, scenario: Scenario) -> AudioPrompt:
        """Prompt audio when readable, otherwise the text prompt alone."""
        if scenario.prompt_audio_path:
            path = Path(scenario.prompt_audio_path)
            if not path.is_absolute() and self._prompt_audio_root is not None:
                path = self._prompt_audio_root / path
            loaded = load_prompt_audio(path)
            if loaded is not None:
                audio, mime_type = loaded
                return AudioPrompt(audio=audio, mime_type=mime_type, transcript=scenario.prompt)

        return AudioPrompt(
            audio=b"",
            mime_type="audio/wav",
            transcript=scenario.prompt,
            system_prompt=DEFAULT_SYSTEM_PROMPT,
        )

    async def _call_provider(
        self, adapter: BaseAdapter, prompt: AudioPrompt
    ) -> tuple[ProviderResponse, float]:
        """One provider attempt bounded by the per-attempt timeout.

        Returns:
            (response, measured wall time in ms).
        """
        start = self._clock()
        try:
            response = await asyncio.wait_for(
                adapter.generate_response(prompt),
                timeout=self._timeout_ms / 1000,
            )
        except TimeoutError as exc:
            raise ProviderError(
                f"Provider call timed out after {self._timeout_ms} ms",
                adapter.provider_type,
                ProviderErrorCode.TIMEOUT,
                retryable=True,
                cause=exc,
            ) from exc
        return response, (self._clock() - start) * 1000

    async def _resolve_transcript(self, response: ProviderResponse) -> str | None:
        if response.transcript and response.transcript.strip():
            return response.transcript.strip()
        if self._transcriber is None or not response.audio:
            return None

        outcome = await self._transcriber.transcribe(response.audio, response.mime_type)
        if outcome.success:
            return outcome.text or None
        logger.info(
            "pair.transcript_unavailable",
            code=outcome.code.value if outcome.code else None,
            error=outcome.error,
        )
        return None

    @staticmethod
    def _error_row(run_id: str, scenario_id: str, provider_id: str, message: str) -> EvalResult:
        return EvalResult(
            id=new_id(),
            run_id=run_id,
            scenario_id=scenario_id,
            provider_id=provider_id,
            judge_reasoning=f"{ERROR_PREFIX} {message}",
            task_completed=False,
        )
