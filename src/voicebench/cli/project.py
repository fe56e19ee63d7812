"""Project context shared by CLI commands.

Locates the project root, loads voicebench.yaml, opens the RunStore
and mirrors configured providers into it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog
import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from voicebench.models.config import ProjectConfig, find_project_root, load_project_config
from voicebench.storage.json_store import RunStore

logger = structlog.get_logger()

console = Console(stderr=True)


@dataclass
class Project:
    root: Path
    config: ProjectConfig
    store: RunStore


def open_project(start: Path | None = None) -> Project:
    """Load config and store, syncing configured providers.

    Exits with code 1 if voicebench.yaml is invalid.
    """
    root = find_project_root(start)
    try:
        config = load_project_config(root)
    except (ValidationError, ValueError, yaml.YAMLError) as exc:
        console.print(f"[bold red]Invalid project config:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    store = RunStore(root, config.storage_dir)
    store.ensure_dirs()
    for provider in config.providers:
        store.save_provider(provider)
    if config.providers:
        logger.debug("providers.synced", count=len(config.providers))
    return Project(root=root, config=config, store=store)
