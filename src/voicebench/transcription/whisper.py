"""OpenAI Whisper transcription.

Transcribes provider response audio so it can be scored when the
provider did not return its own transcript. Rate-limited requests are
retried through a RetryPolicy before being reported.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import openai
import structlog

from voicebench.execution.retry import RetryPolicy, exponential_jitter, is_rate_limited
from voicebench.transcription.base import (
    BaseTranscriber,
    TranscriptionErrorCode,
    TranscriptionOutcome,
)

logger = structlog.get_logger()

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "audio/flac",
        "audio/m4a",
        "audio/mp3",
        "audio/mp4",
        "audio/mpeg",
        "audio/mpga",
        "audio/oga",
        "audio/ogg",
        "audio/wav",
        "audio/webm",
    }
)

# Aliases some providers report for formats Whisper accepts.
_MIME_ALIASES: dict[str, str] = {
    "audio/wave": "audio/wav",
    "audio/x-wav": "audio/wav",
    "audio/x-flac": "audio/flac",
    "audio/x-m4a": "audio/m4a",
}

EXTENSION_TO_MIME: dict[str, str] = {
    ".flac": "audio/flac",
    ".m4a": "audio/m4a",
    ".mp3": "audio/mp3",
    ".mp4": "audio/mp4",
    ".mpeg": "audio/mpeg",
    ".mpga": "audio/mpga",
    ".oga": "audio/oga",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".webm": "audio/webm",
}

_FILENAME_EXTENSIONS: dict[str, str] = {mime: ext for ext, mime in EXTENSION_TO_MIME.items()}


def normalize_mime_type(mime_type: str) -> str:
    base = mime_type.split(";", 1)[0].strip().lower()
    return _MIME_ALIASES.get(base, base)


class WhisperTranscriber(BaseTranscriber):
    """Transcriber backed by the OpenAI audio transcription endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "whisper-1",
        language: str | None = None,
        max_retries: int = 2,
        client: Any | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.language = language
        self._client = client
        self._retry = RetryPolicy(
            max_attempts=max(1, max_retries),
            backoff=exponential_jitter(base=1.0, cap=30.0),
            is_retryable=is_rate_limited,
            sleep=sleep,
            name="transcription",
        )

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self._api_key or os.environ.get("OPENAI_API_KEY"),
                max_retries=0,
            )
        return self._client

    async def transcribe(self, audio: bytes, mime_type: str) -> TranscriptionOutcome:
        """Transcribe an audio buffer.

        Args:
            audio: Raw audio bytes.
            mime_type: MIME type of the audio.

        Returns:
            TranscriptionOutcome; never raises for API failures.
        """
        mime = normalize_mime_type(mime_type)
        if mime not in SUPPORTED_MIME_TYPES:
            return TranscriptionOutcome.failure(
                f"Unsupported MIME type: {mime_type}. "
                f"Supported: {', '.join(sorted(SUPPORTED_MIME_TYPES))}",
                TranscriptionErrorCode.UNSUPPORTED_FORMAT,
            )
        if not audio:
            return TranscriptionOutcome.failure(
                "Audio buffer is empty", TranscriptionErrorCode.INVALID_AUDIO
            )

        filename = f"audio{_FILENAME_EXTENSIONS.get(mime, '.wav')}"
        kwargs: dict[str, Any] = {
            "file": (filename, audio, mime),
            "model": self.model,
            "response_format": "verbose_json",
            "temperature": 0,
        }
        if self.language:
            kwargs["language"] = self.language

        try:
            client = self._get_client()
            response, _, _ = await self._retry.run(
                lambda: client.audio.transcriptions.create(**kwargs)
            )
        except Exception as exc:
            outcome = self._failure_from(exc)
            logger.warning(
                "transcription.failed",
                code=outcome.code.value if outcome.code else None,
                error=outcome.error,
            )
            return outcome

        return TranscriptionOutcome.ok(
            text=(response.text or "").strip(),
            language=getattr(response, "language", None),
            duration_seconds=getattr(response, "duration", None),
        )

    async def transcribe_file(self, path: str | Path) -> TranscriptionOutcome:
        """Transcribe an audio file, inferring the MIME type from its extension."""
        file_path = Path(path)
        if not file_path.is_file():
            return TranscriptionOutcome.failure(
                f"File not found: {file_path}", TranscriptionErrorCode.FILE_NOT_FOUND
            )

        mime = EXTENSION_TO_MIME.get(file_path.suffix.lower())
        if mime is None:
            return TranscriptionOutcome.failure(
                f"Unsupported audio format: {file_path.suffix}. "
                f"Supported: {', '.join(EXTENSION_TO_MIME)}",
                TranscriptionErrorCode.UNSUPPORTED_FORMAT,
            )

        try:
            audio = file_path.read_bytes()
        except OSError as exc:
            return TranscriptionOutcome.failure(str(exc), TranscriptionErrorCode.FILE_NOT_FOUND)
        return await self.transcribe(audio, mime)

    @staticmethod
    def _failure_from(exc: Exception) -> TranscriptionOutcome:
        if is_rate_limited(exc):
            return TranscriptionOutcome.failure(
                "Rate limited by transcription API. Please retry later.",
                TranscriptionErrorCode.RATE_LIMITED,
            )
        if isinstance(exc, openai.APIError):
            return TranscriptionOutcome.failure(
                f"Transcription API error: {exc}", TranscriptionErrorCode.API_ERROR
            )
        return TranscriptionOutcome.failure(str(exc), TranscriptionErrorCode.API_ERROR)
