"""Text normalization and tokenization for error-rate scoring.

Transcripts and expected outcomes are normalized the same way before
alignment so that casing, punctuation, and spacing differences are not
counted as word errors. Internal apostrophes survive so contractions
like "don't" stay a single token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# Curly quotes count as apostrophes when they sit inside a word.
_APOSTROPHE_VARIANTS = str.maketrans({"‘": "'", "’": "'"})

_PUNCTUATION_PATTERN = re.compile(
    r"[.,!?;:\"“”„‚«»‹›()\[\]{}<>@#$%^&*+=|\\~`—–\-]"
)

# Apostrophes not enclosed by word characters on both sides.
_STRAY_APOSTROPHE_PATTERN = re.compile(r"(?<!\w)'+|'+(?!\w)")

_DIGITS_PATTERN = re.compile(r"\d+")
_WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass
class NormalizationOptions:
    """Switches for normalize_text().

    custom_replacements are (pattern, replacement) pairs applied before
    every other step; patterns may be strings or compiled regexes.
    """

    lowercase: bool = True
    remove_punctuation: bool = True
    normalize_whitespace: bool = True
    remove_numbers: bool = False
    custom_replacements: list[tuple[str | re.Pattern[str], str]] = field(
        default_factory=list
    )


DEFAULT_OPTIONS = NormalizationOptions()


def normalize_text(text: str, options: NormalizationOptions | None = None) -> str:
    """Normalize text for word error rate comparison.

    Args:
        text: Raw transcript or reference text.
        options: Normalization switches. Defaults to lowercase, punctuation
            stripping, and whitespace collapsing with digits kept.

    Returns:
        The normalized string. Idempotent under the default options.
    """
    opts = options or DEFAULT_OPTIONS
    normalized = text

    for pattern, replacement in opts.custom_replacements:
        normalized = re.sub(pattern, replacement, normalized)

    if opts.lowercase:
        normalized = normalized.lower()

    # Digits go first so an apostrophe they leave behind is stripped as stray.
    if opts.remove_numbers:
        normalized = _DIGITS_PATTERN.sub(" ", normalized)

    if opts.remove_punctuation:
        normalized = normalized.translate(_APOSTROPHE_VARIANTS)
        normalized = _PUNCTUATION_PATTERN.sub(" ", normalized)
        normalized = _STRAY_APOSTROPHE_PATTERN.sub(" ", normalized)

    if opts.normalize_whitespace:
        normalized = _WHITESPACE_PATTERN.sub(" ", normalized).strip()

    return normalized


def tokenize(text: str) -> list[str]:
    """Split text on whitespace, dropping empty tokens."""
    return text.split()
