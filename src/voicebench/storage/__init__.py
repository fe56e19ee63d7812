"""VoiceBench storage - JSON file persistence for runs, results and records."""

from voicebench.storage.json_store import (
    DuplicateResultError,
    ProviderNotFoundError,
    RunNotFoundError,
    RunStore,
    ScenarioNotFoundError,
    new_id,
)

__all__ = [
    "DuplicateResultError",
    "ProviderNotFoundError",
    "RunNotFoundError",
    "RunStore",
    "ScenarioNotFoundError",
    "new_id",
]
