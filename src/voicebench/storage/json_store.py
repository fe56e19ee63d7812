"""JSON file storage layer for VoiceBench persistence.

Stores runs, scenarios, provider records and per-pair result rows as
JSON files under .voicebench/. Uses atomic writes to prevent corruption,
and exclusive creation for result rows so each (run, scenario, provider)
triple can be inserted only once.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TypeVar
from uuid import uuid4

from pydantic import BaseModel

from voicebench.models.run import EvalResult, EvalRun, RunStatus
from voicebench.models.scenario import ProviderRecord, Scenario

ModelT = TypeVar("ModelT", bound=BaseModel)


class RunNotFoundError(LookupError):
    """No run with the requested ID exists."""


class ScenarioNotFoundError(LookupError):
    """No scenario with the requested ID exists."""


class ProviderNotFoundError(LookupError):
    """No provider record with the requested ID exists."""


class DuplicateResultError(Exception):
    """A result row already exists for the (run, scenario, provider) triple."""

    def __init__(self, run_id: str, scenario_id: str, provider_id: str) -> None:
        self.run_id = run_id
        self.scenario_id = scenario_id
        self.provider_id = provider_id
        super().__init__(
            f"Result already recorded for run '{run_id}', "
            f"scenario '{scenario_id}', provider '{provider_id}'"
        )


def new_id() -> str:
    return str(uuid4())


def _atomic_write(path: Path, content: str) -> None:
    """Write to a .tmp sibling then rename over the target."""
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(content, encoding="utf-8")
    os.replace(tmp_path, path)


class RunStore:
    """Persist and query VoiceBench records as JSON files in .voicebench/.

    File layout:
        .voicebench/
            runs/{run-id}.json
            results/{run-id}/{scenario-id}__{provider-id}.json
            scenarios/{scenario-id}.json
            providers/{provider-id}.json
            audio/{run-id}/{scenario-id}__{provider-id}.{ext}

    Record writes are atomic (write to .tmp, then rename). Result rows are
    created exclusively and never rewritten.
    """

    def __init__(self, project_root: Path, storage_dir: str | None = None) -> None:
        effective_dir = storage_dir or ".voicebench"
        self.root = project_root / effective_dir
        self.runs_dir = self.root / "runs"
        self.results_dir = self.root / "results"
        self.scenarios_dir = self.root / "scenarios"
        self.providers_dir = self.root / "providers"
        self.audio_dir = self.root / "audio"

    def ensure_dirs(self) -> None:
        """Create the storage directory tree."""
        for directory in (
            self.runs_dir,
            self.results_dir,
            self.scenarios_dir,
            self.providers_dir,
            self.audio_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    # -- generic helpers --

    def _save_model(self, directory: Path, key: str, model: BaseModel) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        _atomic_write(directory / f"{key}.json", model.model_dump_json(indent=2))

    @staticmethod
    def _load_model(path: Path, model_cls: type[ModelT]) -> ModelT | None:
        if not path.exists():
            return None
        return model_cls.model_validate_json(path.read_text(encoding="utf-8"))

    @staticmethod
    def _list_models(directory: Path, model_cls: type[ModelT]) -> list[ModelT]:
        if not directory.exists():
            return []
        return [
            model_cls.model_validate_json(f.read_text(encoding="utf-8"))
            for f in sorted(directory.glob("*.json"))
        ]

    # -- runs --

    def save_run(self, run: EvalRun) -> str:
        """Save (create or overwrite) a run record and return its ID."""
        self._save_model(self.runs_dir, run.id, run)
        return run.id

    def load_run(self, run_id: str) -> EvalRun:
        """Load a run record.

        Raises:
            RunNotFoundError: If no run with that ID exists.
        """
        run = self._load_model(self.runs_dir / f"{run_id}.json", EvalRun)
        if run is None:
            raise RunNotFoundError(f"Run '{run_id}' not found")
        return run

    def update_run(self, run_id: str, **updates: object) -> EvalRun:
        """Apply field updates to a stored run and persist the result.

        A status update goes through EvalRun.transition(); all updates are
        validated by re-building the model.

        Raises:
            RunNotFoundError: If no run with that ID exists.
            InvalidStatusTransition: If the status would move backwards.
        """
        current = self.load_run(run_id)
        status = updates.pop("status", None)
        if status is not None:
            current = current.transition(RunStatus(status))
        updated = EvalRun.model_validate({**current.model_dump(), **updates})
        self.save_run(updated)
        return updated

    def list_runs(self) -> list[EvalRun]:
        """All runs, oldest first."""
        return sorted(self._list_models(self.runs_dir, EvalRun), key=lambda r: r.created_at)

    # -- scenarios --

    def save_scenario(self, scenario: Scenario) -> None:
        self._save_model(self.scenarios_dir, scenario.id, scenario)

    def load_scenario(self, scenario_id: str) -> Scenario:
        """Raises ScenarioNotFoundError when missing."""
        scenario = self._load_model(self.scenarios_dir / f"{scenario_id}.json", Scenario)
        if scenario is None:
            raise ScenarioNotFoundError(f"Scenario '{scenario_id}' not found")
        return scenario

    def list_scenarios(self) -> list[Scenario]:
        return self._list_models(self.scenarios_dir, Scenario)

    # -- providers --

    def save_provider(self, provider: ProviderRecord) -> None:
        self._save_model(self.providers_dir, provider.id, provider)

    def load_provider(self, provider_id: str) -> ProviderRecord:
        """Raises ProviderNotFoundError when missing."""
        provider = self._load_model(self.providers_dir / f"{provider_id}.json", ProviderRecord)
        if provider is None:
            raise ProviderNotFoundError(f"Provider '{provider_id}' not found")
        return provider

    def list_providers(self, active_only: bool = False) -> list[ProviderRecord]:
        providers = self._list_models(self.providers_dir, ProviderRecord)
        if active_only:
            return [p for p in providers if p.is_active]
        return providers

    # -- results --

    def _result_path(self, run_id: str, scenario_id: str, provider_id: str) -> Path:
        return self.results_dir / run_id / f"{scenario_id}__{provider_id}.json"

    def insert_result(self, result: EvalResult) -> None:
        """Insert a result row exactly once.

        The row is written to a unique .tmp file and then hard-linked into
        place; linking fails if the target exists, so a concurrent or
        repeated insert for the same triple never overwrites a row and a
        crash never leaves a partial one.

        Raises:
            DuplicateResultError: If a row for the triple already exists.
        """
        path = self._result_path(result.run_id, result.scenario_id, result.provider_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f"{path.name}.{result.id}.tmp")
        tmp_path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        try:
            os.link(tmp_path, path)
        except FileExistsError:
            raise DuplicateResultError(
                result.run_id, result.scenario_id, result.provider_id
            ) from None
        finally:
            tmp_path.unlink(missing_ok=True)

    def load_result(self, run_id: str, scenario_id: str, provider_id: str) -> EvalResult | None:
        """The row for one triple, or None if it was never inserted."""
        return self._load_model(self._result_path(run_id, scenario_id, provider_id), EvalResult)

    def list_results(self, run_id: str) -> list[EvalResult]:
        """All result rows for a run, in insertion order."""
        results = self._list_models(self.results_dir / run_id, EvalResult)
        return sorted(results, key=lambda r: r.created_at)

    def completed_pairs(self, run_id: str) -> set[tuple[str, str]]:
        """The (scenario_id, provider_id) pairs that already have a row."""
        return {result.pair for result in self.list_results(run_id)}
