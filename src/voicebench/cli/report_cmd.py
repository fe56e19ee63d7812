"""voicebench report -- show a stored run's leaderboard and results.

Defaults to the most recently created run.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from voicebench.cli.output import output_json, render_leaderboard, render_results, render_run_header
from voicebench.cli.project import console, open_project
from voicebench.evaluation.aggregation import summarize_by_provider
from voicebench.models.run import EvalRun
from voicebench.storage.json_store import RunNotFoundError, RunStore


def resolve_run(store: RunStore, run_id: str | None) -> EvalRun:
    """Load run_id, or the latest run when None. Exits 1 if none exists."""
    if run_id is None:
        runs = store.list_runs()
        if not runs:
            console.print("[yellow]No runs found.[/yellow]")
            raise typer.Exit(code=1)
        return runs[-1]
    try:
        return store.load_run(run_id)
    except RunNotFoundError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def report(
    run_id: Optional[str] = typer.Argument(None, help="Run id (default: latest run)"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Display a run's leaderboard and per-pair results."""
    store = open_project().store
    eval_run = resolve_run(store, run_id)
    results = store.list_results(eval_run.id)
    leaderboard = summarize_by_provider(results, provider_order=eval_run.provider_ids)

    if format_json:
        output_json(
            {
                "run": eval_run.model_dump(mode="json"),
                "leaderboard": [asdict(s) for s in leaderboard],
                "results": [r.model_dump(mode="json") for r in results],
            }
        )
        return

    scenarios = {s.id: s for s in store.list_scenarios()}
    out = Console()
    render_run_header(eval_run, out)
    if not results:
        out.print("[dim]No results recorded yet.[/dim]")
        return
    render_leaderboard(leaderboard, out)
    out.print()
    render_results(results, scenarios, out)
