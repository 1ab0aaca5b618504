"""
Edit-distance similarity between two LLM answers.

Character-level Levenshtein distance, expressed as a 0-100 similarity
percentage. Inputs are single LLM answers (hundreds to a few thousand
characters), so exact distance is affordable; the caller caps content length
before getting here (see DriftConfig.max_content_length).
"""
from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for non-negative values.

    Python's built-in round() uses banker's rounding; drift percentages are
    stored by the dashboard with half-up rounding.
    """
    return int(math.floor(value + 0.5))


def levenshtein_distance(a: str, b: str) -> int:
    """Classic Levenshtein distance (insert, delete, substitute all cost 1).

    Uses two rolling rows of the DP matrix over the shorter string, so memory
    is O(min(len(a), len(b))) while time stays O(len(a) * len(b)).

    Args:
        a: First string
        b: Second string

    Returns:
        Minimum number of single-character edits turning a into b
    """
    if a == b:
        return 0

    # Common prefix and suffix never contribute to the distance
    prefix = 0
    max_prefix = min(len(a), len(b))
    while prefix < max_prefix and a[prefix] == b[prefix]:
        prefix += 1
    a = a[prefix:]
    b = b[prefix:]

    suffix = 0
    max_suffix = min(len(a), len(b))
    while suffix < max_suffix and a[-1 - suffix] == b[-1 - suffix]:
        suffix += 1
    if suffix:
        a = a[:-suffix]
        b = b[:-suffix]

    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current

    return previous[-1]


def calculate_similarity(a: str, b: str) -> int:
    """Percentage similarity of two texts based on edit distance.

    similarity = round((max_len - distance) / max_len * 100)

    Args:
        a: Previous text
        b: Current text

    Returns:
        Integer in [0, 100]; 100 when both texts are empty
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100

    distance = levenshtein_distance(a, b)
    return round_half_up((max_len - distance) / max_len * 100)
