"""Speech-to-text collaborators used when providers return no transcript."""

from voicebench.transcription.base import (
    BaseTranscriber,
    TranscriptionErrorCode,
    TranscriptionOutcome,
)
from voicebench.transcription.whisper import WhisperTranscriber

__all__ = [
    "BaseTranscriber",
    "TranscriptionErrorCode",
    "TranscriptionOutcome",
    "WhisperTranscriber",
]
