"""voicebench export -- write a run's result rows as JSON or CSV.

Rows are joined with their scenario's name and type; scenarios that
are no longer stored export with empty name and type.
"""

from __future__ import annotations

import csv
import io
import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer

from voicebench.cli.project import open_project
from voicebench.cli.report_cmd import resolve_run
from voicebench.storage.json_store import RunStore

EXPORT_COLUMNS: list[str] = [
    "id",
    "runId",
    "scenarioId",
    "scenarioName",
    "scenarioType",
    "providerId",
    "audioUrl",
    "transcript",
    "ttfb",
    "totalResponseTime",
    "wer",
    "accuracyScore",
    "helpfulnessScore",
    "naturalnessScore",
    "efficiencyScore",
    "taskCompleted",
    "judgeReasoning",
    "createdAt",
]


class ExportFormat(str, Enum):
    json = "json"
    csv = "csv"


def build_export_rows(store: RunStore, run_id: str) -> list[dict[str, Any]]:
    """Result rows for run_id keyed by EXPORT_COLUMNS."""
    scenarios = {s.id: s for s in store.list_scenarios()}
    rows = []
    for r in store.list_results(run_id):
        scenario = scenarios.get(r.scenario_id)
        rows.append(
            {
                "id": r.id,
                "runId": r.run_id,
                "scenarioId": r.scenario_id,
                "scenarioName": scenario.name if scenario else None,
                "scenarioType": scenario.type.value if scenario else None,
                "providerId": r.provider_id,
                "audioUrl": r.audio_path,
                "transcript": r.transcript,
                "ttfb": r.ttfb_ms,
                "totalResponseTime": r.total_ms,
                "wer": r.wer,
                "accuracyScore": r.accuracy_score,
                "helpfulnessScore": r.helpfulness_score,
                "naturalnessScore": r.naturalness_score,
                "efficiencyScore": r.efficiency_score,
                "taskCompleted": r.task_completed,
                "judgeReasoning": r.judge_reasoning,
                "createdAt": r.created_at.isoformat(),
            }
        )
    return rows


def rows_to_csv(rows: list[dict[str, Any]]) -> str:
    """CSV with a header row; None becomes an empty cell."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: "" if v is None else v for k, v in row.items()})
    return buffer.getvalue()


def export(
    run_id: Optional[str] = typer.Argument(None, help="Run id (default: latest run)"),
    fmt: ExportFormat = typer.Option(ExportFormat.json, "--format", "-f", help="json or csv"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """Export a run's results."""
    store = open_project().store
    eval_run = resolve_run(store, run_id)
    rows = build_export_rows(store, eval_run.id)

    if fmt is ExportFormat.csv:
        content = rows_to_csv(rows)
    else:
        content = json.dumps(rows, indent=2) + "\n"

    if output is None:
        typer.echo(content, nl=False)
        return
    output.write_text(content, encoding="utf-8")
    typer.echo(f"Exported {len(rows)} row(s) to {output}", err=True)
