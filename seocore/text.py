"""Plain-text helpers shared by the matchers and the scorer."""

from __future__ import annotations

import re
from html.parser import HTMLParser
from typing import List

# Letters plus apostrophes and hyphens, the way a word counter sees prose.
_LETTER_WORD_RE = re.compile(r"[A-Za-z'-]+")


class _TextExtractor(HTMLParser):
    """Extract plain text from HTML, dropping tags and script/style bodies."""

    def __init__(self):
        super().__init__()
        self._parts: List[str] = []
        self._skip = False

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag in ("script", "style", "noscript"):
            self._skip = True

    def handle_endtag(self, tag: str) -> None:
        if tag in ("script", "style", "noscript"):
            self._skip = False

    def handle_data(self, data: str) -> None:
        if not self._skip:
            self._parts.append(data)

    def get_text(self) -> str:
        return "".join(self._parts)


def strip_tags(html: str) -> str:
    """Remove HTML tags, keeping the text between them."""
    if not html:
        return ""
    parser = _TextExtractor()
    parser.feed(html)
    parser.close()
    return parser.get_text()


def count_words(text: str) -> int:
    """Count whitespace-delimited tokens of the tag-stripped text."""
    return len(strip_tags(text).split())


def letter_words(text: str) -> List[str]:
    """Return the letter words of ``text`` in order (markup symbols dropped)."""
    return _LETTER_WORD_RE.findall(text or "")
