"""VoiceBench adapters - voice provider abstraction layer.

Re-exports the BaseAdapter ABC, the prompt/response dataclasses, the
provider error type, and the adapter registry. Builtin adapters are
imported lazily by the registry.
"""

from voicebench.adapters.base import (
    AdapterOptions,
    AudioPrompt,
    BaseAdapter,
    ConversationTurn,
    HealthStatus,
    LatencyMetrics,
    ProviderError,
    ProviderErrorCode,
    ProviderHealthCheck,
    ProviderResponse,
    ResponseMetadata,
    TokenUsage,
)
from voicebench.adapters.registry import AdapterRegistry

__all__ = [
    "AdapterOptions",
    "AdapterRegistry",
    "AudioPrompt",
    "BaseAdapter",
    "ConversationTurn",
    "HealthStatus",
    "LatencyMetrics",
    "ProviderError",
    "ProviderErrorCode",
    "ProviderHealthCheck",
    "ProviderResponse",
    "ResponseMetadata",
    "TokenUsage",
]
