"""voicebench import -- validate scenario files and store them."""

from __future__ import annotations

from typing import Optional

import structlog
import typer

from voicebench.cli.project import console, open_project
from voicebench.cli.validate_cmd import collect_scenario_files
from voicebench.loader.errors import ErrorFormatter
from voicebench.loader.validator import validate_scenario_file
from voicebench.models.scenario import Scenario

logger = structlog.get_logger()


def import_scenarios(
    files: Optional[list[str]] = typer.Argument(
        None, help="Scenario files to import (default: all in the scenarios dir)"
    ),
) -> None:
    """Import scenarios into the project store.

    Nothing is written unless every file validates. Re-importing a
    scenario id overwrites the stored record.
    """
    project = open_project()
    paths = collect_scenario_files(files)
    formatter = ErrorFormatter(ci_mode=False)

    pending: dict[str, Scenario] = {}
    failed = False
    for path in paths:
        scenarios, errors = validate_scenario_file(path)
        if errors:
            failed = True
            console.print(formatter.format_all(errors, path.read_text(encoding="utf-8"), str(path)), markup=False)
            continue
        for scenario in scenarios:
            if scenario.id in pending:
                console.print(f"[bold red]Duplicate scenario id across files:[/bold red] {scenario.id}")
                failed = True
            pending[scenario.id] = scenario

    if failed:
        raise typer.Exit(code=1)

    for scenario in pending.values():
        project.store.save_scenario(scenario)
    logger.info("scenarios.imported", count=len(pending))
    typer.echo(f"Imported {len(pending)} scenario(s) from {len(paths)} file(s)")
