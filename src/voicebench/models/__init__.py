"""VoiceBench data models - re-exports all public model classes."""

from voicebench.models.config import ProjectConfig
from voicebench.models.run import (
    EvalResult,
    EvalRun,
    ExecutionSummary,
    InvalidStatusTransition,
    RunStatus,
)
from voicebench.models.scenario import Difficulty, ProviderRecord, Scenario, ScenarioType

__all__ = [
    "Difficulty",
    "EvalResult",
    "EvalRun",
    "ExecutionSummary",
    "InvalidStatusTransition",
    "ProjectConfig",
    "ProviderRecord",
    "RunStatus",
    "Scenario",
    "ScenarioType",
]
