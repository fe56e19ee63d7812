"""OpenAI audio adapter for the VoiceBench execution pipeline.

Sends the prompt to an audio-capable chat completion model with
modalities ["text", "audio"] and returns the decoded spoken reply
together with the transcript the model produced for it.
"""

from __future__ import annotations

import base64
import os
from typing import Any

import openai

from voicebench.adapters.base import (
    AdapterOptions,
    AudioPrompt,
    BaseAdapter,
    HealthStatus,
    ProviderError,
    ProviderErrorCode,
    ProviderHealthCheck,
    ProviderResponse,
    ResponseMetadata,
    TokenUsage,
)
from voicebench.execution.latency import LatencyTimer

DEFAULT_MODEL = "gpt-4o-audio-preview"
DEFAULT_VOICE = "alloy"

# Audio formats accepted as input_audio by the chat completions API.
_INPUT_AUDIO_FORMATS: dict[str, str] = {
    "audio/wav": "wav",
    "audio/wave": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}

_OUTPUT_MIME_TYPES: dict[str, str] = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "flac": "audio/flac",
    "opus": "audio/opus",
    "aac": "audio/aac",
}


def map_openai_error(exc: Exception, provider_type: str = "openai") -> ProviderError:
    """Translate an OpenAI SDK exception into a ProviderError.

    Rate limits, timeouts, connection failures and 5xx responses are
    marked retryable.
    """
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, openai.AuthenticationError):
        code, retryable = ProviderErrorCode.AUTHENTICATION_FAILED, False
    elif isinstance(exc, openai.RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota":
            code, retryable = ProviderErrorCode.QUOTA_EXCEEDED, False
        else:
            code, retryable = ProviderErrorCode.RATE_LIMITED, True
    elif isinstance(exc, openai.APITimeoutError):
        code, retryable = ProviderErrorCode.TIMEOUT, True
    elif isinstance(exc, openai.APIConnectionError):
        code, retryable = ProviderErrorCode.NETWORK_ERROR, True
    elif isinstance(exc, openai.NotFoundError):
        code, retryable = ProviderErrorCode.MODEL_NOT_FOUND, False
    elif isinstance(exc, openai.BadRequestError):
        code, retryable = ProviderErrorCode.INVALID_REQUEST, False
    elif isinstance(exc, openai.APIStatusError) and exc.status_code >= 500:
        code, retryable = ProviderErrorCode.PROVIDER_ERROR, True
    else:
        code, retryable = ProviderErrorCode.UNKNOWN, False
    return ProviderError(
        f"OpenAI request failed: {exc}",
        provider_type,
        code,
        retryable=retryable,
        cause=exc,
    )


class OpenAIAudioAdapter(BaseAdapter):
    """Adapter for OpenAI audio chat completions.

    Config keys: api_key (falls back to OPENAI_API_KEY), model, voice,
    endpoint (base URL), audio_format (output format, default wav).
    The AsyncOpenAI client is created lazily on first use.
    """

    provider_type = "openai"

    def __init__(self, options: AdapterOptions | None = None, client: Any | None = None) -> None:
        super().__init__(options)
        self._client: Any = client

    @property
    def model(self) -> str:
        return self.config.get("model") or DEFAULT_MODEL

    @property
    def voice(self) -> str:
        return self.config.get("voice") or self.config.get("voice_id") or DEFAULT_VOICE

    @property
    def output_format(self) -> str:
        return self.config.get("audio_format") or "wav"

    def is_configured(self) -> bool:
        return super().is_configured() or bool(os.environ.get("OPENAI_API_KEY"))

    def _get_client(self) -> Any:
        """Lazily initialize and return the AsyncOpenAI client."""
        if self._client is None:
            api_key = self.config.get("api_key") or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise self.error(
                    "OpenAI API key is not configured",
                    ProviderErrorCode.AUTHENTICATION_FAILED,
                )
            self._client = openai.AsyncOpenAI(
                api_key=api_key,
                base_url=self.config.get("endpoint") or None,
                timeout=self.options.timeout_ms / 1000,
                max_retries=0,
            )
        return self._client

    def _build_messages(self, prompt: AudioPrompt) -> list[dict[str, Any]]:
        """Convert an AudioPrompt to chat completion messages.

        Prompt audio is sent as input_audio when its format is accepted;
        otherwise the transcript is sent as text.
        """
        messages: list[dict[str, Any]] = []
        if prompt.system_prompt:
            messages.append({"role": "system", "content": prompt.system_prompt})

        for turn in prompt.history:
            messages.append({"role": turn.role, "content": turn.content})

        input_format = _INPUT_AUDIO_FORMATS.get(prompt.mime_type.split(";", 1)[0].lower())
        if prompt.audio and input_format:
            content: list[dict[str, Any]] = [
                {
                    "type": "input_audio",
                    "input_audio": {
                        "data": base64.b64encode(prompt.audio).decode("ascii"),
                        "format": input_format,
                    },
                }
            ]
            messages.append({"role": "user", "content": content})
        elif prompt.transcript:
            messages.append({"role": "user", "content": prompt.transcript})
        else:
            raise self.error(
                f"Prompt has neither a transcript nor audio in a supported format "
                f"({prompt.mime_type})",
                ProviderErrorCode.UNSUPPORTED_FORMAT,
            )
        return messages

    async def generate_response(self, prompt: AudioPrompt) -> ProviderResponse:
        """Send a prompt to the OpenAI audio model.

        Args:
            prompt: Prompt audio and/or transcript.

        Returns:
            ProviderResponse with decoded audio and the model transcript.

        Raises:
            ProviderError: Mapped from the SDK exception, or
                INVALID_RESPONSE when the reply carries no audio.
        """
        client = self._get_client()
        messages = self._build_messages(prompt)

        timer = LatencyTimer().start()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                modalities=["text", "audio"],
                audio={"voice": self.voice, "format": self.output_format},
                messages=messages,
            )
        except Exception as exc:
            raise map_openai_error(exc, self.provider_type) from exc
        timer.stop()

        if not response.choices:
            raise self.error("OpenAI returned no choices", ProviderErrorCode.INVALID_RESPONSE)
        message = response.choices[0].message
        audio = getattr(message, "audio", None)
        if audio is None or not audio.data:
            raise self.error("OpenAI response contained no audio", ProviderErrorCode.INVALID_RESPONSE)

        try:
            audio_bytes = base64.b64decode(audio.data)
        except ValueError as exc:
            raise self.error(
                "OpenAI returned undecodable audio",
                ProviderErrorCode.INVALID_RESPONSE,
                cause=exc,
            ) from exc

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return ProviderResponse(
            audio=audio_bytes,
            mime_type=_OUTPUT_MIME_TYPES.get(self.output_format, "audio/wav"),
            latency=timer.metrics(),
            transcript=(audio.transcript or message.content or None),
            metadata=ResponseMetadata(
                model=response.model,
                voice_id=self.voice,
                request_id=response.id,
                token_usage=usage,
            ),
            sample_rate=24000 if self.output_format == "wav" else None,
        )

    async def health_check(self) -> ProviderHealthCheck:
        """Retrieve the configured model to verify credentials and reachability."""
        timer = LatencyTimer().start()
        try:
            client = self._get_client()
            await client.models.retrieve(self.model)
        except Exception as exc:
            timer.stop()
            error = map_openai_error(exc, self.provider_type)
            return ProviderHealthCheck(
                status=HealthStatus.unhealthy,
                available=False,
                response_time_ms=timer.total_ms,
                error=str(error),
                details={"code": error.code.value},
            )
        timer.stop()
        return ProviderHealthCheck(
            status=HealthStatus.healthy,
            available=True,
            response_time_ms=timer.total_ms,
            details={"model": self.model},
        )

    def provider_name(self) -> str:
        """Return the provider name."""
        return "openai"
