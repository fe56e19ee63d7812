"""VoiceBench - benchmark voice AI providers with WER and LLM-judge scoring."""

__version__ = "0.1.0"
