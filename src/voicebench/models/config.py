"""Project configuration model for VoiceBench.

Captures voicebench.yaml fields with sensible defaults for storage,
engine limits, the judge model, transcription, and providers.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from voicebench.models.scenario import ProviderRecord

CONFIG_FILENAME = "voicebench.yaml"


class EngineConfig(BaseModel):
    """Limits applied to every provider call in a run."""

    model_config = {"extra": "forbid"}

    provider_timeout_ms: int = Field(default=30000, gt=0)
    provider_retry_attempts: int = Field(default=1, ge=0, le=10)
    save_audio: bool = True


class JudgeSettings(BaseModel):
    """LLM judge defaults."""

    model_config = {"extra": "forbid"}

    model: str = "gpt-4o"
    timeout_ms: int = Field(default=60000, gt=0)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_retries: int = Field(default=3, ge=1, le=10)


class TranscriptionSettings(BaseModel):
    """Fallback transcription used when a provider returns no transcript."""

    model_config = {"extra": "forbid"}

    model: str = "whisper-1"
    language: str | None = None
    max_retries: int = Field(default=2, ge=1, le=10)


class ProjectConfig(BaseModel):
    """Project-level configuration loaded from voicebench.yaml."""

    model_config = {"extra": "forbid"}

    storage_dir: str = ".voicebench"
    scenarios_dir: str = "scenarios"
    engine: EngineConfig = Field(default_factory=EngineConfig)
    judge: JudgeSettings = Field(default_factory=JudgeSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    providers: list[ProviderRecord] = Field(default_factory=list)


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) looking for voicebench.yaml or .voicebench/.

    Args:
        start: Starting path (file or directory). Defaults to cwd.

    Returns:
        Path to the project root directory, or cwd if neither is found.
    """
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    while current != current.parent:
        if (current / CONFIG_FILENAME).exists() or (current / ".voicebench").exists():
            return current
        current = current.parent
    return Path.cwd()


def load_project_config(project_root: Path | None = None) -> ProjectConfig:
    """Load ProjectConfig from voicebench.yaml. Returns defaults if not found.

    Args:
        project_root: Path to the project root directory. If None,
            uses find_project_root() to locate it.

    Returns:
        Validated ProjectConfig instance.
    """
    if project_root is None:
        project_root = find_project_root()
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return ProjectConfig()

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return ProjectConfig()
    return ProjectConfig.model_validate(raw)
