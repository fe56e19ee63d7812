"""Tests for voicebench.transcription.whisper - Whisper fallback transcription."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from voicebench.transcription.base import TranscriptionErrorCode, TranscriptionOutcome
from voicebench.transcription.whisper import WhisperTranscriber, normalize_mime_type

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")


def _transcription(text: str = " Hello there. ") -> SimpleNamespace:
    return SimpleNamespace(text=text, language="english", duration=1.25)


def _make_transcriber(side_effect, **kwargs) -> tuple[WhisperTranscriber, MagicMock, list[float]]:
    client = MagicMock()
    client.audio.transcriptions.create = AsyncMock(side_effect=side_effect)
    sleeps: list[float] = []

    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    return WhisperTranscriber(client=client, sleep=record_sleep, **kwargs), client, sleeps


class TestTranscriptionOutcome:
    def test_ok_and_failure_constructors(self):
        ok = TranscriptionOutcome.ok("hi", language="en")
        assert ok.success is True
        assert ok.text == "hi"
        assert ok.error is None

        failed = TranscriptionOutcome.failure("nope", TranscriptionErrorCode.API_ERROR)
        assert failed.success is False
        assert failed.code == TranscriptionErrorCode.API_ERROR
        assert failed.text is None


class TestNormalizeMimeType:
    def test_aliases_and_parameters(self):
        assert normalize_mime_type("audio/x-wav") == "audio/wav"
        assert normalize_mime_type("Audio/WAV; codecs=1") == "audio/wav"
        assert normalize_mime_type("audio/mpeg") == "audio/mpeg"


class TestTranscribe:
    @pytest.mark.asyncio
    async def test_success(self):
        transcriber, client, _ = _make_transcriber([_transcription()])
        outcome = await transcriber.transcribe(b"RIFF", "audio/wav")

        assert outcome.success is True
        assert outcome.text == "Hello there."
        assert outcome.language == "english"
        assert outcome.duration_seconds == 1.25

        kwargs = client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["file"] == ("audio.wav", b"RIFF", "audio/wav")
        assert kwargs["model"] == "whisper-1"
        assert kwargs["response_format"] == "verbose_json"
        assert kwargs["temperature"] == 0
        assert "language" not in kwargs

    @pytest.mark.asyncio
    async def test_language_hint_is_forwarded(self):
        transcriber, client, _ = _make_transcriber([_transcription()], language="de")
        await transcriber.transcribe(b"ID3", "audio/mpeg")
        kwargs = client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["language"] == "de"
        assert kwargs["file"][0] == "audio.mpeg"

    @pytest.mark.asyncio
    async def test_unsupported_mime_type(self):
        transcriber, client, _ = _make_transcriber([_transcription()])
        outcome = await transcriber.transcribe(b"data", "audio/aiff")
        assert outcome.success is False
        assert outcome.code == TranscriptionErrorCode.UNSUPPORTED_FORMAT
        client.audio.transcriptions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_audio(self):
        transcriber, client, _ = _make_transcriber([_transcription()])
        outcome = await transcriber.transcribe(b"", "audio/wav")
        assert outcome.code == TranscriptionErrorCode.INVALID_AUDIO
        client.audio.transcriptions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_rate_limit_retried_then_reported(self):
        error = openai.RateLimitError(
            "slow down", response=httpx.Response(429, request=_REQUEST), body=None
        )
        transcriber, client, sleeps = _make_transcriber([error, error], max_retries=2)
        outcome = await transcriber.transcribe(b"RIFF", "audio/wav")

        assert outcome.success is False
        assert outcome.code == TranscriptionErrorCode.RATE_LIMITED
        assert client.audio.transcriptions.create.await_count == 2
        assert len(sleeps) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self):
        error = openai.RateLimitError(
            "slow down", response=httpx.Response(429, request=_REQUEST), body=None
        )
        transcriber, _, _ = _make_transcriber([error, _transcription("ok")], max_retries=2)
        outcome = await transcriber.transcribe(b"RIFF", "audio/wav")
        assert outcome.success is True
        assert outcome.text == "ok"

    @pytest.mark.asyncio
    async def test_api_error_not_retried(self):
        error = openai.InternalServerError(
            "boom", response=httpx.Response(500, request=_REQUEST), body=None
        )
        transcriber, client, sleeps = _make_transcriber([error])
        outcome = await transcriber.transcribe(b"RIFF", "audio/wav")
        assert outcome.code == TranscriptionErrorCode.API_ERROR
        assert client.audio.transcriptions.create.await_count == 1
        assert sleeps == []


class TestTranscribeFile:
    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path):
        transcriber, _, _ = _make_transcriber([_transcription()])
        outcome = await transcriber.transcribe_file(tmp_path / "nope.wav")
        assert outcome.code == TranscriptionErrorCode.FILE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unsupported_extension(self, tmp_path: Path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        transcriber, _, _ = _make_transcriber([_transcription()])
        outcome = await transcriber.transcribe_file(path)
        assert outcome.code == TranscriptionErrorCode.UNSUPPORTED_FORMAT

    @pytest.mark.asyncio
    async def test_reads_file_and_infers_mime(self, tmp_path: Path):
        path = tmp_path / "reply.mp3"
        path.write_bytes(b"ID3audio")
        transcriber, client, _ = _make_transcriber([_transcription()])
        outcome = await transcriber.transcribe_file(path)
        assert outcome.success is True
        assert client.audio.transcriptions.create.call_args.kwargs["file"] == (
            "audio.mp3",
            b"ID3audio",
            "audio/mp3",
        )
