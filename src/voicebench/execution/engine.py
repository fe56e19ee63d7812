"""EvaluationEngine: resumable execution of an EvalRun.

Scenarios run strictly in the run's declared order. Within a scenario,
every provider that has no result row yet runs concurrently inside an
asyncio.TaskGroup, and all of them settle before the next scenario
starts. Existing result rows form the resume frontier: those pairs are
skipped, so calling execute() again after an interruption only does the
remaining work.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from voicebench.adapters.registry import AdapterRegistry
from voicebench.evaluation.judge.service import JudgeConfig, JudgeService
from voicebench.execution.pair_executor import PairExecutor, PairOutcome
from voicebench.models.run import EvalRun, ExecutionSummary, RunStatus
from voicebench.storage.json_store import RunStore
from voicebench.transcription.whisper import WhisperTranscriber

if TYPE_CHECKING:
    from voicebench.models.config import ProjectConfig

logger = structlog.get_logger()

Pair = tuple[str, str]
ProgressCallback = Callable[[int, int], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _RunState:
    """Mutable per-execute() bookkeeping, guarded by the engine lock."""

    def __init__(self, run: EvalRun, completed: set[Pair], failed: set[Pair]) -> None:
        self.run = run
        self.completed = completed
        self.failed = failed
        self.executed = 0
        self.newly_failed = 0
        self.lock = asyncio.Lock()


class EvaluationEngine:
    """Executes runs pair by pair and keeps run progress current.

    Only a missing run (RunNotFoundError) aborts execute() up front.
    Pair-level failures are recorded as error rows by the PairExecutor.
    If the store itself fails mid-run, the run is marked failed and the
    error propagates.
    """

    def __init__(self, store: RunStore, executor: PairExecutor) -> None:
        self._store = store
        self._executor = executor

    @classmethod
    def from_config(
        cls,
        store: RunStore,
        config: ProjectConfig,
        registry: AdapterRegistry | None = None,
        project_root: Path | None = None,
    ) -> EvaluationEngine:
        """Wire the default OpenAI judge and Whisper transcriber from project config."""
        judge = JudgeService(
            JudgeConfig(
                model=config.judge.model,
                timeout_ms=config.judge.timeout_ms,
                temperature=config.judge.temperature,
                max_retries=config.judge.max_retries,
            )
        )
        transcriber = WhisperTranscriber(
            model=config.transcription.model,
            language=config.transcription.language,
            max_retries=config.transcription.max_retries,
        )
        executor = PairExecutor(
            store=store,
            registry=registry or AdapterRegistry.with_builtins(),
            judge=judge,
            transcriber=transcriber,
            timeout_ms=config.engine.provider_timeout_ms,
            retry_attempts=config.engine.provider_retry_attempts,
            save_audio=config.engine.save_audio,
            prompt_audio_root=project_root,
        )
        return cls(store, executor)

    async def execute(
        self,
        run_id: str,
        progress_callback: ProgressCallback | None = None,
    ) -> ExecutionSummary:
        """Execute or resume a run.

        Args:
            run_id: ID of a stored EvalRun.
            progress_callback: Optional callback(completed_pairs, total_pairs)
                called after each pair settles.

        Returns:
            ExecutionSummary for this call.

        Raises:
            RunNotFoundError: If the run does not exist.
        """
        run = self._store.load_run(run_id)
        pairs = [(s, p) for s in run.scenario_ids for p in run.provider_ids]
        pair_set = set(pairs)

        existing = [r for r in self._store.list_results(run_id) if r.pair in pair_set]
        completed = {r.pair for r in existing}
        failed = {r.pair for r in existing if r.is_error}
        skipped = len(completed)

        if run.is_terminal:
            # Terminal runs are never re-opened; report what is recorded.
            logger.info("run.skipped", run_id=run_id, status=run.status.value)
            return ExecutionSummary(
                run_id=run_id,
                total_pairs=len(pairs),
                skipped_pairs=skipped,
                completed_pairs=len(completed),
                status=run.status,
            )

        run = self._store.update_run(
            run_id,
            status=RunStatus.running,
            started_at=run.started_at or _now(),
            progress=run.compute_progress(len(completed)),
            failed_pairs=len(failed),
        )
        logger.info(
            "run.started",
            run_id=run_id,
            total_pairs=len(pairs),
            skipped_pairs=skipped,
        )

        state = _RunState(run, completed, failed)
        try:
            for scenario_id in run.scenario_ids:
                await self._execute_scenario(state, scenario_id, progress_callback)

            run = self._store.update_run(
                run_id,
                status=RunStatus.completed,
                progress=100.0,
                failed_pairs=len(state.failed),
                completed_at=_now(),
            )
        except Exception as exc:
            self._mark_failed(run_id)
            if isinstance(exc, ExceptionGroup) and len(exc.exceptions) == 1:
                raise exc.exceptions[0] from exc
            raise

        logger.info(
            "run.completed",
            run_id=run_id,
            executed_pairs=state.executed,
            failed_pairs=len(state.failed),
        )
        return ExecutionSummary(
            run_id=run_id,
            total_pairs=len(pairs),
            skipped_pairs=skipped,
            executed_pairs=state.executed,
            failed_pairs=state.newly_failed,
            completed_pairs=len(state.completed),
            status=run.status,
        )

    async def _execute_scenario(
        self,
        state: _RunState,
        scenario_id: str,
        progress_callback: ProgressCallback | None,
    ) -> None:
        """Fan out the scenario's pending providers and join them all."""
        pending = [
            provider_id
            for provider_id in state.run.provider_ids
            if (scenario_id, provider_id) not in state.completed
        ]
        if not pending:
            return

        async with asyncio.TaskGroup() as tg:
            for provider_id in pending:
                tg.create_task(
                    self._execute_pair(state, scenario_id, provider_id, progress_callback)
                )

    async def _execute_pair(
        self,
        state: _RunState,
        scenario_id: str,
        provider_id: str,
        progress_callback: ProgressCallback | None,
    ) -> None:
        outcome = await self._executor.execute(state.run.id, scenario_id, provider_id)
        await self._record(state, outcome, progress_callback)

    async def _record(
        self,
        state: _RunState,
        outcome: PairOutcome,
        progress_callback: ProgressCallback | None,
    ) -> None:
        """Update progress from the authoritative completed set."""
        pair = (outcome.scenario_id, outcome.provider_id)
        async with state.lock:
            state.completed.add(pair)
            if outcome.duplicate:
                # Another writer recorded this pair; count its row as it stands.
                existing = self._store.load_result(state.run.id, *pair)
                if existing is not None and existing.is_error:
                    state.failed.add(pair)
            else:
                state.executed += 1
                if outcome.failed:
                    state.failed.add(pair)
                    state.newly_failed += 1

            total = state.run.total_pairs
            self._store.update_run(
                state.run.id,
                progress=state.run.compute_progress(len(state.completed)),
                failed_pairs=len(state.failed),
            )
            if progress_callback is not None:
                progress_callback(len(state.completed), total)

    def _mark_failed(self, run_id: str) -> None:
        try:
            self._store.update_run(run_id, status=RunStatus.failed, completed_at=_now())
        except Exception as exc:  # noqa: BLE001
            logger.error("run.mark_failed_error", run_id=run_id, error=str(exc))
        else:
            logger.error("run.failed", run_id=run_id)
