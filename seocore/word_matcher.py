"""
Word variation matching.

Decides whether some inflected form of a keyword word occurs in a text using
a naive but effective heuristic: strip a common suffix to get a stem, then
look for any whole word that starts with the first ~75% of that stem.
"invoice" therefore matches "invoices", "invoicing" and "invoiced" without a
dictionary or a full stemmer.
"""

from __future__ import annotations

import re
from typing import Pattern

# Shortest prefix ever used for matching, unless the stem itself is shorter.
MIN_PREFIX_LENGTH = 4
PREFIX_RATIO = 0.75

_SIBILANT_ES_RE = re.compile(r"(ss|sh|ch|x|z)es$")


def normalize_word(word: str) -> str:
    """Reduce a lowercase token to a heuristic stem.

    Rules are tried in order and the first match wins; the length guards keep
    short words from being over-stemmed.

    >>> normalize_word("stories"), normalize_word("boxes"), normalize_word("boss")
    ('story', 'box', 'boss')
    """
    if len(word) > 4 and word.endswith("ies"):
        return word[:-3] + "y"
    if len(word) > 4 and _SIBILANT_ES_RE.search(word):
        return word[:-2]
    if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    if len(word) > 4 and word.endswith("ed"):
        return word[:-2]
    if len(word) > 5 and word.endswith("ing"):
        return word[:-3]
    return word


def prefix_length(normalized: str) -> int:
    """Number of leading stem characters a text word must share."""
    # halves round up: 6 letters -> 5, 14 letters -> 11
    length = max(MIN_PREFIX_LENGTH, int(len(normalized) * PREFIX_RATIO + 0.5))
    return min(length, len(normalized))


def match_prefix(word: str) -> str:
    """Lowercase and normalize ``word`` and return its matching prefix."""
    normalized = normalize_word(word.lower())
    return normalized[: prefix_length(normalized)]


def variation_pattern(word: str) -> Pattern[str]:
    """Compile the whole-word pattern matching any variation of ``word``."""
    return re.compile(
        r"\b" + re.escape(match_prefix(word)) + r"[a-z]*\b", re.IGNORECASE
    )


def word_variation_exists_in_text(word: str, text: str) -> bool:
    """True if a word in ``text`` starts with the matching prefix of ``word``."""
    if not word or not text or not match_prefix(word):
        return False
    return variation_pattern(word).search(text) is not None


def count_word_variations(word: str, text: str) -> int:
    """Count non-overlapping whole-word variations of ``word`` in ``text``."""
    if not word or not text or not match_prefix(word):
        return 0
    return len(variation_pattern(word).findall(text))
