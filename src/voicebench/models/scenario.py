"""Scenario and provider record models.

Scenarios encode the user-facing YAML contract for benchmark prompts;
provider records describe which adapter to build and with what config.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ScenarioType(str, Enum):
    """Kind of interaction a scenario tests; selects the judge rubric."""

    task_completion = "task-completion"
    information_retrieval = "information-retrieval"
    conversation_flow = "conversation-flow"


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class Scenario(BaseModel):
    """A single benchmark prompt with the outcome a good answer achieves."""

    model_config = {"extra": "forbid"}

    id: str = Field(pattern=r"^[a-z0-9-]+$", min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    type: ScenarioType
    prompt: str = Field(min_length=1)
    expected_outcome: str = Field(min_length=1)
    prompt_audio_path: str | None = None
    tags: list[str] = Field(default_factory=list)
    language: str = Field(default="en", min_length=2, max_length=10)
    difficulty: Difficulty = Difficulty.medium


class ProviderRecord(BaseModel):
    """A configured voice provider.

    type is an adapter registry key (e.g. "openai") or the dotted path
    of a custom BaseAdapter subclass.
    """

    model_config = {"extra": "forbid"}

    id: str = Field(pattern=r"^[A-Za-z0-9_-]+$", min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
