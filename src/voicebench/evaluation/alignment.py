"""Levenshtein alignment over token sequences.

Builds the classic dynamic-programming distance matrix together with a
parallel operations matrix, then backtracks from the bottom-right cell
to recover the word-by-word alignment. Works on any sequence of
hashable tokens, so the same code serves word (WER) and character (CER)
scoring.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class EditOp(str, Enum):
    """Operation that produced an alignment cell."""

    correct = "correct"
    substitution = "substitution"
    insertion = "insertion"
    deletion = "deletion"


@dataclass(frozen=True)
class AlignmentPair:
    """One aligned position.

    reference is None for insertions; hypothesis is None for deletions.
    """

    reference: str | None
    hypothesis: str | None
    operation: EditOp


def edit_distance(
    reference: Sequence[str],
    hypothesis: Sequence[str],
) -> tuple[list[list[int]], list[list[EditOp]]]:
    """Compute the distance and operations matrices.

    Both matrices are (len(reference) + 1) x (len(hypothesis) + 1). When
    several choices reach the same minimum cost, substitution wins over
    insertion, and insertion wins over deletion.

    Returns:
        Tuple of (distance matrix, operations matrix).
    """
    m = len(reference)
    n = len(hypothesis)

    distance = [[0] * (n + 1) for _ in range(m + 1)]
    operations = [[EditOp.correct] * (n + 1) for _ in range(m + 1)]

    for j in range(1, n + 1):
        distance[0][j] = j
        operations[0][j] = EditOp.insertion

    for i in range(1, m + 1):
        distance[i][0] = i
        operations[i][0] = EditOp.deletion

    for i in range(1, m + 1):
        ref_token = reference[i - 1]
        row = distance[i]
        prev_row = distance[i - 1]
        op_row = operations[i]
        for j in range(1, n + 1):
            if ref_token == hypothesis[j - 1]:
                row[j] = prev_row[j - 1]
                op_row[j] = EditOp.correct
                continue

            substitution_cost = prev_row[j - 1] + 1
            insertion_cost = row[j - 1] + 1
            deletion_cost = prev_row[j] + 1
            min_cost = min(substitution_cost, insertion_cost, deletion_cost)
            row[j] = min_cost

            if min_cost == substitution_cost:
                op_row[j] = EditOp.substitution
            elif min_cost == insertion_cost:
                op_row[j] = EditOp.insertion
            else:
                op_row[j] = EditOp.deletion

    return distance, operations


def backtrack(
    reference: Sequence[str],
    hypothesis: Sequence[str],
    operations: list[list[EditOp]],
) -> list[AlignmentPair]:
    """Walk the operations matrix from (m, n) back to (0, 0).

    Returns:
        Alignment pairs in reference/hypothesis order.
    """
    alignment: list[AlignmentPair] = []
    i = len(reference)
    j = len(hypothesis)

    while i > 0 or j > 0:
        op = operations[i][j]
        if op in (EditOp.correct, EditOp.substitution):
            alignment.append(AlignmentPair(reference[i - 1], hypothesis[j - 1], op))
            i -= 1
            j -= 1
        elif op == EditOp.insertion:
            alignment.append(AlignmentPair(None, hypothesis[j - 1], op))
            j -= 1
        else:
            alignment.append(AlignmentPair(reference[i - 1], None, op))
            i -= 1

    alignment.reverse()
    return alignment


def align(reference: Sequence[str], hypothesis: Sequence[str]) -> list[AlignmentPair]:
    """Align two token sequences with minimum edit distance."""
    _, operations = edit_distance(reference, hypothesis)
    return backtrack(reference, hypothesis, operations)
