"""Levenshtein distance over activity sequences."""

from typing import Sequence


def edit_distance(seq1: Sequence[str], seq2: Sequence[str]) -> int:
    """Minimum number of insertions, deletions and substitutions turning seq1 into seq2."""
    if len(seq1) < len(seq2):
        seq1, seq2 = seq2, seq1
    previous = list(range(len(seq2) + 1))
    for i, a in enumerate(seq1, start=1):
        current = [i] + [0] * len(seq2)
        for j, b in enumerate(seq2, start=1):
            cost = 0 if a == b else 1
            current[j] = min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
        previous = current
    return previous[-1]


def normalized_edit_distance(seq1: Sequence[str], seq2: Sequence[str]) -> float:
    """
    Edit distance divided by the longer length.

    Returns 0.0 for identical (or two empty) sequences and 1.0 when exactly
    one of them is empty.
    """
    m, n = len(seq1), len(seq2)
    if m == 0 and n == 0:
        return 0.0
    if m == 0 or n == 0:
        return 1.0
    return edit_distance(seq1, seq2) / max(m, n)
