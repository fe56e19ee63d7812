"""voicebench validate -- check scenario YAML files.

Reports every syntax and schema error in each file at once, with rich
or CI-friendly formatting.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from voicebench.loader.errors import ErrorFormatter
from voicebench.loader.validator import validate_scenario_file
from voicebench.models.config import find_project_root, load_project_config


def collect_scenario_files(paths: list[str] | None) -> list[Path]:
    """Resolve explicit paths, or every YAML file under the scenarios dir.

    Exits with code 1 when a given file is missing or nothing is found.
    """
    if paths:
        files = []
        for raw in paths:
            path = Path(raw)
            if not path.exists():
                typer.echo(f"Error: File not found: {raw}", err=True)
                raise typer.Exit(code=1)
            files.append(path)
        return files

    root = find_project_root()
    scenarios_dir = root / load_project_config(root).scenarios_dir
    files = []
    if scenarios_dir.is_dir():
        files = sorted([*scenarios_dir.glob("**/*.yaml"), *scenarios_dir.glob("**/*.yml")])
    if not files:
        typer.echo("No scenario files found. Specify files or create a scenarios/ directory.")
        raise typer.Exit(code=1)
    return files


def validate(
    files: Optional[list[str]] = typer.Argument(
        None, help="Scenario files to validate (default: all in the scenarios dir)"
    ),
    ci: bool = typer.Option(False, "--ci", help="CI-friendly concise output"),
) -> None:
    """Validate scenario YAML files. Exits 1 if any file is invalid."""
    formatter = ErrorFormatter(ci_mode=ci)
    paths = collect_scenario_files(files)

    valid = 0
    scenario_count = 0
    for path in paths:
        scenarios, errors = validate_scenario_file(path)
        if errors:
            source = path.read_text(encoding="utf-8")
            typer.echo(formatter.format_all(errors, source, str(path)), err=not ci)
            continue
        valid += 1
        scenario_count += len(scenarios)
        typer.echo(f"  {path} ... valid ({len(scenarios)} scenario{'s' if len(scenarios) != 1 else ''})")

    typer.echo(f"\n{valid}/{len(paths)} files valid, {scenario_count} scenarios")
    if valid < len(paths):
        raise typer.Exit(code=1)
