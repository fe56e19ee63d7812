"""BaseAdapter ABC and the prompt/response dataclasses for voice providers.

Every provider adapter (the built-in OpenAI audio adapter or a custom
class referenced by dotted path) subclasses BaseAdapter and implements
generate_response() and health_check(). The dataclasses here are the
types that flow between the pair executor and the adapters.

These are plain dataclasses (not Pydantic) to avoid overhead in the
hot path of adapter calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


@dataclass
class ConversationTurn:
    """A prior turn in a multi-turn conversation. Roles: user, assistant."""

    role: str
    content: str
    audio: bytes | None = None


@dataclass
class AudioPrompt:
    """Input sent to a voice provider.

    audio may be empty when only a text transcript is available; adapters
    then send the transcript as text.
    """

    audio: bytes
    mime_type: str
    transcript: str | None = None
    system_prompt: str | None = None
    history: list[ConversationTurn] = field(default_factory=list)
    sample_rate: int | None = None
    channels: int | None = None


@dataclass
class LatencyMetrics:
    """Provider-side latency in milliseconds."""

    ttfb_ms: float | None
    total_ms: float | None
    audio_processing_ms: float | None = None
    inference_ms: float | None = None
    tts_ms: float | None = None


@dataclass
class TokenUsage:
    """Token usage counts reported by the provider."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    audio_tokens: int = 0


@dataclass
class ResponseMetadata:
    """Descriptive data about a provider response."""

    model: str | None = None
    voice_id: str | None = None
    request_id: str | None = None
    token_usage: TokenUsage | None = None
    streamed: bool = False
    provider_specific: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderResponse:
    """Audio reply, optional transcript, and latency from one provider call."""

    audio: bytes
    mime_type: str
    latency: LatencyMetrics
    transcript: str | None = None
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)
    sample_rate: int | None = None
    duration_ms: float | None = None


class HealthStatus(str, Enum):
    healthy = "healthy"
    degraded = "degraded"
    unhealthy = "unhealthy"


@dataclass
class ProviderHealthCheck:
    """Result of a lightweight availability probe."""

    status: HealthStatus
    available: bool
    response_time_ms: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class ProviderErrorCode(str, Enum):
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    TIMEOUT = "TIMEOUT"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NETWORK_ERROR = "NETWORK_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    UNKNOWN = "UNKNOWN"


class ProviderError(Exception):
    """Typed failure raised by adapters.

    Attributes:
        provider_type: Registry key of the adapter that failed.
        code: Failure category.
        retryable: Whether the pair executor may try the call again.
        cause: The underlying SDK exception, if any.
    """

    def __init__(
        self,
        message: str,
        provider_type: str,
        code: ProviderErrorCode,
        retryable: bool = False,
        cause: BaseException | None = None,
    ) -> None:
        self.provider_type = provider_type
        self.code = code
        self.retryable = retryable
        self.cause = cause
        super().__init__(message)


@dataclass
class AdapterOptions:
    """Construction options for an adapter.

    config is the provider record's free-form config (api key, model,
    voice, endpoint...).
    """

    config: dict[str, Any] = field(default_factory=dict)
    timeout_ms: int = 30000
    retry_attempts: int = 1


class BaseAdapter(ABC):
    """Abstract base class for all voice provider adapters.

    Subclasses set provider_type and implement generate_response() and
    health_check().
    """

    provider_type: str = "custom"

    def __init__(self, options: AdapterOptions | None = None) -> None:
        self.options = options or AdapterOptions()

    @property
    def config(self) -> dict[str, Any]:
        return self.options.config

    @abstractmethod
    async def generate_response(self, prompt: AudioPrompt) -> ProviderResponse:
        """Send a prompt to the provider and return its spoken reply.

        Args:
            prompt: Audio and/or transcript plus optional system prompt
                and history.

        Returns:
            ProviderResponse with audio, optional transcript, and latency.

        Raises:
            ProviderError: On any provider failure.
        """
        ...

    @abstractmethod
    async def health_check(self) -> ProviderHealthCheck:
        """Probe authentication and basic connectivity."""
        ...

    def provider_name(self) -> str:
        """Return the provider name for this adapter.

        Default implementation returns the class name.
        Subclasses may override for custom naming.
        """
        return type(self).__name__

    def is_configured(self) -> bool:
        """True when the config carries an API key or an endpoint."""
        return bool(self.config.get("api_key") or self.config.get("endpoint"))

    def error(
        self,
        message: str,
        code: ProviderErrorCode,
        retryable: bool = False,
        cause: BaseException | None = None,
    ) -> ProviderError:
        """Build a ProviderError tagged with this adapter's provider_type."""
        return ProviderError(message, self.provider_type, code, retryable=retryable, cause=cause)
