"""Tests for the JSON storage layer (RunStore)."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from voicebench.models.run import EvalResult, EvalRun, InvalidStatusTransition, RunStatus
from voicebench.models.scenario import ProviderRecord, Scenario, ScenarioType
from voicebench.storage.json_store import (
    DuplicateResultError,
    ProviderNotFoundError,
    RunNotFoundError,
    RunStore,
    ScenarioNotFoundError,
    new_id,
)


def _make_run(run_id: str = "run-1", created_at: datetime | None = None) -> EvalRun:
    return EvalRun(
        id=run_id,
        name="Nightly",
        scenario_ids=["weather", "reminder"],
        provider_ids=["openai-alloy"],
        created_at=created_at or datetime.now(timezone.utc),
    )


def _make_scenario(scenario_id: str = "weather") -> Scenario:
    return Scenario(
        id=scenario_id,
        name="Weather today",
        type=ScenarioType.information_retrieval,
        prompt="What's the weather like today?",
        expected_outcome="A short weather summary",
    )


def _make_result(
    scenario_id: str = "weather",
    provider_id: str = "openai-alloy",
    run_id: str = "run-1",
    **fields,
) -> EvalResult:
    return EvalResult(
        id=new_id(),
        run_id=run_id,
        scenario_id=scenario_id,
        provider_id=provider_id,
        **fields,
    )


class TestRunStoreEnsureDirs:
    def test_creates_layout(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.ensure_dirs()
        for name in ("runs", "results", "scenarios", "providers", "audio"):
            assert (tmp_path / ".voicebench" / name).is_dir()

    def test_custom_storage_dir(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path, storage_dir="bench-data")
        assert store.root == tmp_path / "bench-data"


class TestRuns:
    def test_save_and_load(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        run = _make_run()
        assert store.save_run(run) == "run-1"
        assert store.load_run("run-1") == run

    def test_saved_file_is_json(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.save_run(_make_run())
        data = json.loads((tmp_path / ".voicebench" / "runs" / "run-1.json").read_text())
        assert data["status"] == "pending"
        assert not list((tmp_path / ".voicebench" / "runs").glob("*.tmp"))

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(RunNotFoundError):
            RunStore(tmp_path).load_run("nope")

    def test_update_run_fields_and_status(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.save_run(_make_run())
        updated = store.update_run("run-1", status=RunStatus.running, progress=50)
        assert updated.status == RunStatus.running
        assert updated.progress == 50
        assert store.load_run("run-1").progress == 50

    def test_update_run_rejects_backwards_status(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.save_run(_make_run())
        store.update_run("run-1", status=RunStatus.running)
        store.update_run("run-1", status=RunStatus.completed)
        with pytest.raises(InvalidStatusTransition):
            store.update_run("run-1", status=RunStatus.running)
        assert store.load_run("run-1").status == RunStatus.completed

    def test_update_run_validates_fields(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.save_run(_make_run())
        with pytest.raises(ValueError):
            store.update_run("run-1", progress=150)

    def test_list_runs_oldest_first(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        now = datetime.now(timezone.utc)
        store.save_run(_make_run("b-run", created_at=now))
        store.save_run(_make_run("a-run", created_at=now + timedelta(seconds=5)))
        assert [r.id for r in store.list_runs()] == ["b-run", "a-run"]

    def test_list_runs_empty(self, tmp_path: Path) -> None:
        assert RunStore(tmp_path).list_runs() == []


class TestRecords:
    def test_scenarios(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.save_scenario(_make_scenario("weather"))
        store.save_scenario(_make_scenario("alarm"))
        assert store.load_scenario("weather").name == "Weather today"
        assert [s.id for s in store.list_scenarios()] == ["alarm", "weather"]
        with pytest.raises(ScenarioNotFoundError):
            store.load_scenario("missing")

    def test_providers(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.save_provider(ProviderRecord(id="on", name="On", type="openai"))
        store.save_provider(ProviderRecord(id="off", name="Off", type="openai", is_active=False))
        assert {p.id for p in store.list_providers()} == {"on", "off"}
        assert [p.id for p in store.list_providers(active_only=True)] == ["on"]
        with pytest.raises(ProviderNotFoundError):
            store.load_provider("missing")


class TestResults:
    def test_load_result(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        result = _make_result(wer=0.25)
        store.insert_result(result)
        assert store.load_result("run-1", "weather", "openai-alloy") == result
        assert store.load_result("run-1", "reminder", "openai-alloy") is None

    def test_insert_and_list(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        now = datetime.now(timezone.utc)
        first = _make_result("weather", wer=0.1, created_at=now)
        second = _make_result("reminder", wer=0.2, created_at=now + timedelta(seconds=1))
        store.insert_result(first)
        store.insert_result(second)

        assert store.list_results("run-1") == [first, second]
        assert store.completed_pairs("run-1") == {
            ("weather", "openai-alloy"),
            ("reminder", "openai-alloy"),
        }

    def test_duplicate_insert_keeps_original(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        original = _make_result(wer=0.1)
        store.insert_result(original)

        with pytest.raises(DuplicateResultError) as exc_info:
            store.insert_result(_make_result(wer=0.9))
        assert exc_info.value.scenario_id == "weather"

        assert store.list_results("run-1") == [original]
        assert not list((tmp_path / ".voicebench" / "results" / "run-1").glob("*.tmp"))

    def test_results_scoped_to_run(self, tmp_path: Path) -> None:
        store = RunStore(tmp_path)
        store.insert_result(_make_result(run_id="run-1"))
        store.insert_result(_make_result(run_id="run-2"))
        assert len(store.list_results("run-1")) == 1
        assert store.list_results("run-3") == []

    def test_new_ids_are_unique(self) -> None:
        assert len({new_id() for _ in range(100)}) == 100
