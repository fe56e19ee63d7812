"""VoiceBench execution utilities - retry policy, latency, and audio files.

The pair executor and run engine live in voicebench.execution.pair_executor
and voicebench.execution.engine.
"""

from voicebench.execution.audio import extension_for, load_prompt_audio, save_response_audio
from voicebench.execution.latency import LatencyTimer, resolve_latency
from voicebench.execution.retry import (
    RetryPolicy,
    exponential_jitter,
    fixed,
    is_transient,
    linear,
)

__all__ = [
    "LatencyTimer",
    "RetryPolicy",
    "exponential_jitter",
    "extension_for",
    "fixed",
    "is_transient",
    "linear",
    "load_prompt_audio",
    "resolve_latency",
    "save_response_audio",
]
