"""Tests for voicebench.adapters.openai_adapter - OpenAI audio chat completions."""

from __future__ import annotations

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from voicebench.adapters.base import (
    AdapterOptions,
    AudioPrompt,
    ConversationTurn,
    HealthStatus,
    ProviderError,
    ProviderErrorCode,
)
from voicebench.adapters.openai_adapter import (
    DEFAULT_MODEL,
    DEFAULT_VOICE,
    OpenAIAudioAdapter,
    map_openai_error,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
AUDIO_BYTES = b"RIFF\x00\x00fake-wav"


def _status_error(cls: type, status: int, body: object = None) -> Exception:
    return cls("request failed", response=httpx.Response(status, request=_REQUEST), body=body)


def _completion(audio_data: str | None = None, transcript: str | None = "Sure, done.", content=None):
    audio = None
    if audio_data is not None:
        audio = SimpleNamespace(data=audio_data, transcript=transcript)
    return SimpleNamespace(
        id="chatcmpl-123",
        model="gpt-4o-audio-preview-2024-12-17",
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=30, total_tokens=42),
        choices=[SimpleNamespace(message=SimpleNamespace(content=content, audio=audio))],
    )


def _make_adapter(response=None, side_effect=None, **config) -> tuple[OpenAIAudioAdapter, MagicMock]:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=side_effect)
    client.models.retrieve = AsyncMock()
    adapter = OpenAIAudioAdapter(AdapterOptions(config=config), client=client)
    return adapter, client


def _text_prompt(**overrides) -> AudioPrompt:
    fields = {
        "audio": b"",
        "mime_type": "audio/wav",
        "transcript": "What's the weather today?",
        "system_prompt": "You are a helpful voice assistant.",
    }
    fields.update(overrides)
    return AudioPrompt(**fields)


class TestGenerateResponse:
    @pytest.mark.asyncio
    async def test_decodes_audio_and_transcript(self):
        encoded = base64.b64encode(AUDIO_BYTES).decode()
        adapter, _ = _make_adapter(_completion(encoded))

        response = await adapter.generate_response(_text_prompt())

        assert response.audio == AUDIO_BYTES
        assert response.mime_type == "audio/wav"
        assert response.transcript == "Sure, done."
        assert response.metadata.request_id == "chatcmpl-123"
        assert response.metadata.voice_id == DEFAULT_VOICE
        assert response.metadata.token_usage.total_tokens == 42
        assert response.latency.total_ms >= 0
        assert response.latency.ttfb_ms == response.latency.total_ms

    @pytest.mark.asyncio
    async def test_text_prompt_request(self):
        adapter, client = _make_adapter(_completion(base64.b64encode(b"a").decode()))
        await adapter.generate_response(
            _text_prompt(history=[ConversationTurn(role="user", content="Hi")])
        )

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == DEFAULT_MODEL
        assert kwargs["modalities"] == ["text", "audio"]
        assert kwargs["audio"] == {"voice": DEFAULT_VOICE, "format": "wav"}
        assert kwargs["messages"] == [
            {"role": "system", "content": "You are a helpful voice assistant."},
            {"role": "user", "content": "Hi"},
            {"role": "user", "content": "What's the weather today?"},
        ]

    @pytest.mark.asyncio
    async def test_config_overrides_model_voice_and_format(self):
        adapter, client = _make_adapter(
            _completion(base64.b64encode(b"a").decode()),
            model="gpt-4o-mini-audio-preview",
            voice="verse",
            audio_format="mp3",
        )
        response = await adapter.generate_response(_text_prompt())

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini-audio-preview"
        assert kwargs["audio"] == {"voice": "verse", "format": "mp3"}
        assert response.mime_type == "audio/mpeg"

    @pytest.mark.asyncio
    async def test_audio_prompt_sent_as_input_audio(self):
        adapter, client = _make_adapter(_completion(base64.b64encode(b"a").decode()))
        await adapter.generate_response(
            AudioPrompt(audio=AUDIO_BYTES, mime_type="audio/wav", transcript="ignored")
        )

        user_message = client.chat.completions.create.call_args.kwargs["messages"][-1]
        part = user_message["content"][0]
        assert part["type"] == "input_audio"
        assert part["input_audio"]["format"] == "wav"
        assert base64.b64decode(part["input_audio"]["data"]) == AUDIO_BYTES

    @pytest.mark.asyncio
    async def test_unsupported_audio_falls_back_to_transcript(self):
        adapter, client = _make_adapter(_completion(base64.b64encode(b"a").decode()))
        await adapter.generate_response(
            AudioPrompt(audio=b"OggS", mime_type="audio/ogg", transcript="hello")
        )
        user_message = client.chat.completions.create.call_args.kwargs["messages"][-1]
        assert user_message == {"role": "user", "content": "hello"}

    @pytest.mark.asyncio
    async def test_nothing_to_send(self):
        adapter, client = _make_adapter(_completion("AA=="))
        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate_response(AudioPrompt(audio=b"OggS", mime_type="audio/ogg"))
        assert exc_info.value.code == ProviderErrorCode.UNSUPPORTED_FORMAT
        client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_audio_is_invalid_response(self):
        adapter, _ = _make_adapter(_completion(None, content="text only"))
        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate_response(_text_prompt())
        assert exc_info.value.code == ProviderErrorCode.INVALID_RESPONSE
        assert exc_info.value.provider_type == "openai"

    @pytest.mark.asyncio
    async def test_transcript_falls_back_to_message_content(self):
        adapter, _ = _make_adapter(
            _completion(base64.b64encode(b"a").decode(), transcript=None, content="From content")
        )
        response = await adapter.generate_response(_text_prompt())
        assert response.transcript == "From content"

    @pytest.mark.asyncio
    async def test_sdk_error_is_mapped(self):
        adapter, _ = _make_adapter(side_effect=_status_error(openai.RateLimitError, 429))
        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate_response(_text_prompt())
        assert exc_info.value.code == ProviderErrorCode.RATE_LIMITED
        assert exc_info.value.retryable is True
        assert isinstance(exc_info.value.cause, openai.RateLimitError)

    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        adapter = OpenAIAudioAdapter(AdapterOptions())
        assert adapter.is_configured() is False
        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate_response(_text_prompt())
        assert exc_info.value.code == ProviderErrorCode.AUTHENTICATION_FAILED


class TestMapOpenAIError:
    def test_authentication(self):
        error = map_openai_error(_status_error(openai.AuthenticationError, 401))
        assert error.code == ProviderErrorCode.AUTHENTICATION_FAILED
        assert error.retryable is False

    def test_insufficient_quota(self):
        exc = _status_error(openai.RateLimitError, 429, body={"code": "insufficient_quota"})
        error = map_openai_error(exc)
        assert error.code == ProviderErrorCode.QUOTA_EXCEEDED
        assert error.retryable is False

    def test_timeout(self):
        error = map_openai_error(openai.APITimeoutError(request=_REQUEST))
        assert error.code == ProviderErrorCode.TIMEOUT
        assert error.retryable is True

    def test_connection(self):
        error = map_openai_error(openai.APIConnectionError(request=_REQUEST))
        assert error.code == ProviderErrorCode.NETWORK_ERROR
        assert error.retryable is True

    def test_not_found(self):
        error = map_openai_error(_status_error(openai.NotFoundError, 404))
        assert error.code == ProviderErrorCode.MODEL_NOT_FOUND

    def test_bad_request(self):
        error = map_openai_error(_status_error(openai.BadRequestError, 400))
        assert error.code == ProviderErrorCode.INVALID_REQUEST
        assert error.retryable is False

    def test_server_error_is_retryable(self):
        error = map_openai_error(_status_error(openai.InternalServerError, 500))
        assert error.code == ProviderErrorCode.PROVIDER_ERROR
        assert error.retryable is True

    def test_unknown(self):
        error = map_openai_error(RuntimeError("weird"))
        assert error.code == ProviderErrorCode.UNKNOWN

    def test_provider_error_passthrough(self):
        original = ProviderError("x", "openai", ProviderErrorCode.TIMEOUT)
        assert map_openai_error(original) is original


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self):
        adapter, client = _make_adapter()
        health = await adapter.health_check()
        assert health.status == HealthStatus.healthy
        assert health.available is True
        client.models.retrieve.assert_awaited_once_with(DEFAULT_MODEL)

    @pytest.mark.asyncio
    async def test_unhealthy(self):
        adapter, client = _make_adapter()
        client.models.retrieve = AsyncMock(side_effect=_status_error(openai.AuthenticationError, 401))
        health = await adapter.health_check()
        assert health.status == HealthStatus.unhealthy
        assert health.available is False
        assert health.details["code"] == "AUTHENTICATION_FAILED"

    def test_provider_name(self):
        assert OpenAIAudioAdapter().provider_name() == "openai"
