"""Evaluation run and result models.

An EvalRun tracks status and progress for one benchmark over an ordered
list of scenarios and a set of providers. Each (scenario, provider)
pair produces exactly one immutable EvalResult row.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

ERROR_PREFIX = "ERROR:"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


TERMINAL_STATUSES: frozenset[RunStatus] = frozenset(
    {RunStatus.completed, RunStatus.failed, RunStatus.cancelled}
)

# Status only moves forward.
ALLOWED_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.pending: frozenset({RunStatus.running, RunStatus.cancelled}),
    RunStatus.running: TERMINAL_STATUSES,
    RunStatus.completed: frozenset(),
    RunStatus.failed: frozenset(),
    RunStatus.cancelled: frozenset(),
}


class InvalidStatusTransition(ValueError):
    """Raised when a run status change would move backwards."""

    def __init__(self, current: RunStatus, target: RunStatus) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move run from '{current.value}' to '{target.value}'")


class EvalRun(BaseModel):
    """One benchmark run over scenarios x providers."""

    model_config = {"extra": "forbid"}

    id: str
    name: str = Field(min_length=1, max_length=255)
    scenario_ids: list[str] = Field(min_length=1)
    provider_ids: list[str] = Field(min_length=1)
    status: RunStatus = RunStatus.pending
    progress: float = Field(default=0.0, ge=0, le=100)
    failed_pairs: int = Field(default=0, ge=0)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("provider_ids")
    @classmethod
    def _dedupe_providers(cls, value: list[str]) -> list[str]:
        """Providers form a set; keep first occurrence order."""
        return list(dict.fromkeys(value))

    @property
    def total_pairs(self) -> int:
        return len(self.scenario_ids) * len(self.provider_ids)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def compute_progress(self, completed_pairs: int) -> float:
        """Progress percentage for a completed-pair count, 0..100.

        Not rounded, so only a run with every pair recorded reads 100.
        """
        total = self.total_pairs
        if total == 0:
            return 100.0
        return min(100.0, completed_pairs / total * 100)

    def transition(self, target: RunStatus, **updates: object) -> EvalRun:
        """Return a copy moved to target status with extra field updates.

        Same-status transitions only apply the updates.

        Raises:
            InvalidStatusTransition: If target is not reachable from the
                current status.
        """
        if target != self.status and target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(self.status, target)
        return self.model_copy(update={"status": target, **updates})


class EvalResult(BaseModel):
    """Immutable outcome for one (run, scenario, provider) pair.

    A row whose judge_reasoning starts with "ERROR:" records a failed
    pair; its metric fields are null and task_completed is False.
    """

    model_config = {"extra": "forbid", "frozen": True}

    id: str
    run_id: str
    scenario_id: str
    provider_id: str
    audio_path: str | None = None
    transcript: str | None = None
    ttfb_ms: int | None = None
    total_ms: int | None = None
    wer: float | None = None
    accuracy_score: int | None = Field(default=None, ge=0, le=100)
    helpfulness_score: int | None = Field(default=None, ge=0, le=100)
    naturalness_score: int | None = Field(default=None, ge=0, le=100)
    efficiency_score: int | None = Field(default=None, ge=0, le=100)
    judge_reasoning: str | None = None
    task_completed: bool | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.scenario_id, self.provider_id)

    @property
    def is_error(self) -> bool:
        return bool(self.judge_reasoning and self.judge_reasoning.startswith(ERROR_PREFIX))

    @property
    def error_message(self) -> str | None:
        if not self.is_error:
            return None
        return self.judge_reasoning[len(ERROR_PREFIX) :].strip()


class ExecutionSummary(BaseModel):
    """What one execute() call did."""

    model_config = {"extra": "forbid"}

    run_id: str
    total_pairs: int
    skipped_pairs: int = 0
    executed_pairs: int = 0
    failed_pairs: int = 0
    completed_pairs: int = 0
    status: RunStatus
