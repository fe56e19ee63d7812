"""Word and character error rate.

WER = (substitutions + insertions + deletions) / reference word count.
WER can exceed 1.0 when the hypothesis has many insertions; accuracy is
1 - WER clamped at zero.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from voicebench.evaluation.alignment import AlignmentPair, EditOp, align
from voicebench.evaluation.normalizer import (
    NormalizationOptions,
    normalize_text,
    tokenize,
)


@dataclass(frozen=True)
class WERResult:
    """Error counts and rates for one hypothesis/reference comparison.

    For CER the same fields count characters instead of words.
    """

    wer: float
    wer_percent: float
    substitutions: int
    insertions: int
    deletions: int
    total_errors: int
    reference_length: int
    hypothesis_length: int
    correct_words: int
    accuracy: float


@dataclass(frozen=True)
class DetailedWERResult(WERResult):
    """WERResult plus the alignment and normalized inputs."""

    alignment: list[AlignmentPair] = field(default_factory=list)
    normalized_reference: str = ""
    normalized_hypothesis: str = ""


def _score_tokens(
    reference: Sequence[str],
    hypothesis: Sequence[str],
) -> tuple[dict, list[AlignmentPair]]:
    """Align two token sequences and derive the WERResult fields."""
    if not reference:
        # Nothing to align against: every hypothesis token is an insertion.
        hyp_len = len(hypothesis)
        alignment = [AlignmentPair(None, tok, EditOp.insertion) for tok in hypothesis]
        return {
            "wer": float(hyp_len),
            "wer_percent": hyp_len * 100.0,
            "substitutions": 0,
            "insertions": hyp_len,
            "deletions": 0,
            "total_errors": hyp_len,
            "reference_length": 0,
            "hypothesis_length": hyp_len,
            "correct_words": 0,
            "accuracy": 1.0 if hyp_len == 0 else 0.0,
        }, alignment

    alignment = align(reference, hypothesis)
    counts = Counter(pair.operation for pair in alignment)

    substitutions = counts[EditOp.substitution]
    insertions = counts[EditOp.insertion]
    deletions = counts[EditOp.deletion]
    total_errors = substitutions + insertions + deletions
    wer = total_errors / len(reference)

    return {
        "wer": wer,
        "wer_percent": wer * 100.0,
        "substitutions": substitutions,
        "insertions": insertions,
        "deletions": deletions,
        "total_errors": total_errors,
        "reference_length": len(reference),
        "hypothesis_length": len(hypothesis),
        "correct_words": counts[EditOp.correct],
        "accuracy": max(0.0, 1.0 - wer),
    }, alignment


def calculate_wer(
    hypothesis: str,
    reference: str,
    options: NormalizationOptions | None = None,
) -> WERResult:
    """Calculate word error rate of hypothesis against reference.

    Args:
        hypothesis: The transcribed or generated text.
        reference: The expected text.
        options: Normalization applied to both sides before tokenizing.
    """
    ref_words = tokenize(normalize_text(reference, options))
    hyp_words = tokenize(normalize_text(hypothesis, options))
    fields, _ = _score_tokens(ref_words, hyp_words)
    return WERResult(**fields)


def calculate_detailed_wer(
    hypothesis: str,
    reference: str,
    options: NormalizationOptions | None = None,
) -> DetailedWERResult:
    """Calculate WER and keep the word-by-word alignment."""
    norm_reference = normalize_text(reference, options)
    norm_hypothesis = normalize_text(hypothesis, options)
    fields, alignment = _score_tokens(tokenize(norm_reference), tokenize(norm_hypothesis))
    return DetailedWERResult(
        **fields,
        alignment=alignment,
        normalized_reference=norm_reference,
        normalized_hypothesis=norm_hypothesis,
    )


def calculate_cer(
    hypothesis: str,
    reference: str,
    options: NormalizationOptions | None = None,
) -> WERResult:
    """Calculate character error rate.

    Whitespace is removed after normalization, so only the characters
    themselves are compared. The ``wer`` field holds the CER value.
    """
    ref_chars = list("".join(tokenize(normalize_text(reference, options))))
    hyp_chars = list("".join(tokenize(normalize_text(hypothesis, options))))
    fields, _ = _score_tokens(ref_chars, hyp_chars)
    return WERResult(**fields)


_OP_MARKERS: dict[EditOp, str] = {
    EditOp.correct: " ",
    EditOp.substitution: "S",
    EditOp.insertion: "I",
    EditOp.deletion: "D",
}


def format_alignment(alignment: list[AlignmentPair]) -> str:
    """Render an alignment as REF/HYP/OPS lines for debugging.

    Example:
        REF: the cat sat
        HYP: the dog sat
        OPS:     S
    """
    ref_line = "REF: "
    hyp_line = "HYP: "
    ops_line = "OPS: "

    for pair in alignment:
        ref_word = pair.reference if pair.reference is not None else "***"
        hyp_word = pair.hypothesis if pair.hypothesis is not None else "***"
        width = max(len(ref_word), len(hyp_word)) + 1
        ref_line += ref_word.ljust(width)
        hyp_line += hyp_word.ljust(width)
        ops_line += _OP_MARKERS[pair.operation].ljust(width)

    return "\n".join([ref_line, hyp_line, ops_line])
