"""Transcription contract used when a provider returns no transcript."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class TranscriptionErrorCode(str, Enum):
    INVALID_AUDIO = "INVALID_AUDIO"
    API_ERROR = "API_ERROR"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    RATE_LIMITED = "RATE_LIMITED"


@dataclass(frozen=True)
class TranscriptionOutcome:
    """Success carries text; failure carries error and code."""

    success: bool
    text: str | None = None
    language: str | None = None
    duration_seconds: float | None = None
    error: str | None = None
    code: TranscriptionErrorCode | None = None

    @classmethod
    def ok(
        cls,
        text: str,
        language: str | None = None,
        duration_seconds: float | None = None,
    ) -> TranscriptionOutcome:
        return cls(success=True, text=text, language=language, duration_seconds=duration_seconds)

    @classmethod
    def failure(cls, error: str, code: TranscriptionErrorCode) -> TranscriptionOutcome:
        return cls(success=False, error=error, code=code)


class BaseTranscriber(ABC):
    """Speech-to-text collaborator.

    Implementations report API failures through TranscriptionOutcome
    instead of raising.
    """

    @abstractmethod
    async def transcribe(self, audio: bytes, mime_type: str) -> TranscriptionOutcome:
        """Transcribe an audio buffer."""
        ...
