"""
Brand mention extraction.

A mention is the window of text around one occurrence of the brand name.
Windows are compared across snapshots to find mentions that appeared or
disappeared.
"""
from __future__ import annotations

import re
from typing import Callable, List, Tuple

from brand_drift.errors import InvalidInputError


DEFAULT_WINDOW = 50


def extract_mentions(text: str, brand_name: str, window: int = DEFAULT_WINDOW) -> List[str]:
    """Find every occurrence of a brand and capture its surrounding context.

    Matching is case-insensitive, left to right and non-overlapping. Each hit
    yields ``text[start - window : end + window]`` clamped to the text and
    stripped of surrounding whitespace. Windows of neighbouring hits may
    overlap; they are kept as separate mentions.

    Args:
        text: Text to search
        brand_name: Brand name to look for
        window: Characters of context on each side of the hit

    Returns:
        Context strings in order of occurrence

    Raises:
        InvalidInputError: If text is not a string, brand_name is blank,
            or window is negative
    """
    if not isinstance(text, str):
        raise InvalidInputError(f"Expected text content, got {type(text).__name__}")
    if not isinstance(brand_name, str) or not brand_name.strip():
        raise InvalidInputError("Brand name is required for mention extraction")
    if window < 0:
        raise InvalidInputError(f"Mention window must be >= 0, got {window}")

    mentions: List[str] = []
    for match in re.finditer(re.escape(brand_name), text, re.IGNORECASE):
        start = max(0, match.start() - window)
        end = min(len(text), match.end() + window)
        mentions.append(text[start:end].strip())

    return mentions


def normalize_mention(mention: str) -> str:
    """Identity key for a mention that ignores whitespace reflow and case."""
    return " ".join(mention.split()).casefold()


def _exact(mention: str) -> str:
    return mention


def _difference(
    source: List[str],
    other: List[str],
    key: Callable[[str], str],
) -> List[str]:
    other_keys = {key(m) for m in other}
    seen = set()
    result: List[str] = []
    for mention in source:
        k = key(mention)
        if k in other_keys or k in seen:
            continue
        seen.add(k)
        result.append(mention)
    return result


def diff_mentions(
    previous: List[str],
    current: List[str],
    normalize: bool = False,
) -> Tuple[List[str], List[str]]:
    """Set difference of mention windows between two snapshots.

    Order of first appearance is preserved and each mention is listed once.

    Args:
        previous: Mentions extracted from the previous snapshot
        current: Mentions extracted from the current snapshot
        normalize: Compare on normalize_mention() keys instead of exact text

    Returns:
        Tuple of (added_mentions, removed_mentions)
    """
    key = normalize_mention if normalize else _exact
    added = _difference(current, previous, key)
    removed = _difference(previous, current, key)
    return added, removed
