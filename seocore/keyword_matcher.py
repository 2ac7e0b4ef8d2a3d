"""
Keyword phrase matching.

Exact phrase matching under-credits content that naturally varies word
forms, so :func:`contains_keyword` falls back to a "smart" match: every
significant word of the phrase must appear somewhere in the text in some
inflected form, in any order. Density is computed the same way, averaging
variation counts over the phrase's significant words.
"""

from __future__ import annotations

import re
from typing import FrozenSet, List

from seocore.text import count_words
from seocore.word_matcher import count_word_variations, word_variation_exists_in_text

# Articles, prepositions, auxiliaries, conjunctions, pronouns and determiners
# ignored when splitting a keyword phrase into significant words.
STOP_WORDS: FrozenSet[str] = frozenset({
    "a", "an", "the", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "as", "is", "was", "are", "were", "be", "been",
    "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must", "can", "and", "but",
    "or", "nor", "so", "yet", "both", "either", "neither", "not",
    "only", "than", "too", "very", "just", "also", "how", "what",
    "when", "where", "why", "who", "which", "this", "that", "these",
    "those", "it", "its", "your", "my", "our", "their", "his", "her",
})

MIN_SIGNIFICANT_LENGTH = 3


def get_significant_words(phrase: str) -> List[str]:
    """Split ``phrase`` into lowercase words, dropping stop words and short tokens."""
    if not phrase:
        return []
    return [
        word for word in phrase.strip().lower().split()
        if len(word) >= MIN_SIGNIFICANT_LENGTH and word not in STOP_WORDS
    ]


def contains_exact_phrase(text: str, phrase: str) -> bool:
    """Case-insensitive, word-bounded match of the whole phrase."""
    pattern = r"\b" + re.escape(phrase) + r"\b"
    return re.search(pattern, text, re.IGNORECASE) is not None


def contains_keyword_smart(text: str, phrase: str) -> bool:
    """True when every significant word of ``phrase`` has a variation in ``text``."""
    words = get_significant_words(phrase)
    if not words:
        return False
    text_lower = text.lower()
    return all(word_variation_exists_in_text(word, text_lower) for word in words)


def contains_keyword(text: str, phrase: str) -> bool:
    """Check whether ``text`` contains ``phrase`` or a smart variation of it.

    >>> contains_keyword("Freelance Invoices in Australia", "freelance invoice australia")
    True
    >>> contains_keyword("Freelance Guide", "freelance invoice australia")
    False
    """
    if not phrase or not text:
        return False
    if contains_exact_phrase(text, phrase):
        return True
    return contains_keyword_smart(text, phrase)


def calculate_keyword_density(content: str, phrase: str) -> float:
    """Approximate keyword density of ``phrase`` in ``content`` as a percentage.

    Counts variations of each significant word, averages over the number of
    significant words and divides by the word count of the tag-stripped
    content. Returns 0.0 for empty content or a phrase made of stop words.
    """
    if not phrase or not content:
        return 0.0

    word_count = count_words(content)
    if word_count == 0:
        return 0.0

    words = get_significant_words(phrase)
    if not words:
        return 0.0

    content_lower = content.lower()
    total_matches = sum(count_word_variations(word, content_lower) for word in words)

    return (total_matches / len(words) / word_count) * 100
