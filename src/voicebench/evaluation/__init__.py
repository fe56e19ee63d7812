"""Evaluation package for response scoring.

Provides text normalization, word alignment, WER/CER scoring, and
per-provider aggregation. The LLM judge lives in voicebench.evaluation.judge.
"""

from __future__ import annotations

from voicebench.evaluation.aggregation import ProviderSummary, summarize_by_provider
from voicebench.evaluation.alignment import AlignmentPair, EditOp, align
from voicebench.evaluation.normalizer import NormalizationOptions, normalize_text, tokenize
from voicebench.evaluation.wer import (
    DetailedWERResult,
    WERResult,
    calculate_cer,
    calculate_detailed_wer,
    calculate_wer,
    format_alignment,
)

__all__ = [
    "AlignmentPair",
    "DetailedWERResult",
    "EditOp",
    "NormalizationOptions",
    "ProviderSummary",
    "WERResult",
    "align",
    "calculate_cer",
    "calculate_detailed_wer",
    "calculate_wer",
    "format_alignment",
    "normalize_text",
    "summarize_by_provider",
    "tokenize",
]
