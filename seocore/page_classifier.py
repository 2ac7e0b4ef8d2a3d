"""
URL-based page classification.

Everything here works from the URL alone: page type from path patterns,
candidate keywords from path tokens and a display title from the last
path segment. Used when pages are discovered in a sitemap or added by hand.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import FrozenSet, List, Tuple
from urllib.parse import urlparse


class PageType(str, Enum):
    BLOG = "blog"
    PRODUCT = "product"
    SERVICE = "service"
    LANDING = "landing"
    OTHER = "other"


# First matching group wins.
PAGE_TYPE_PATTERNS: Tuple[Tuple[PageType, Tuple[str, ...]], ...] = (
    (PageType.BLOG, ("/blog/", "/posts/", "/articles/", "/news/", "/resources/")),
    (PageType.PRODUCT, ("/product/", "/products/", "/shop/", "/store/", "/item/")),
    (PageType.SERVICE, ("/service/", "/services/", "/solutions/")),
    (PageType.LANDING, ("/landing/", "/lp/", "/campaign/")),
)

URL_STOP_WORDS: FrozenSet[str] = frozenset({
    "www", "http", "https", "com", "org", "net", "html", "php", "aspx",
    "the", "and", "for", "with", "this", "that",
})

MAX_URL_KEYWORDS = 10

_EXTENSION_RE = re.compile(r"\.[a-zA-Z]{2,4}$")
_DELIMITER_RE = re.compile(r"[/\-_]")
_NUMERIC_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")


def classify_page_type(url: str) -> PageType:
    """Classify a page by substring patterns in its lowercased URL.

    >>> classify_page_type("https://x.com/shop/item")
    <PageType.PRODUCT: 'product'>
    """
    url_lower = (url or "").lower()
    for page_type, patterns in PAGE_TYPE_PATTERNS:
        if any(pattern in url_lower for pattern in patterns):
            return page_type
    return PageType.OTHER


def _url_path(url: str) -> str:
    return urlparse(url or "").path or ""


def extract_keywords_from_url(url: str) -> List[str]:
    """Up to ten keyword tokens from the URL path, in path order."""
    path = _EXTENSION_RE.sub("", _url_path(url))
    keywords = []
    for segment in _DELIMITER_RE.split(path):
        segment = segment.strip()
        if len(segment) <= 2 or _NUMERIC_RE.match(segment):
            continue
        if segment.lower() in URL_STOP_WORDS:
            continue
        keywords.append(segment)
    return keywords[:MAX_URL_KEYWORDS]


def extract_title_from_url(url: str) -> str:
    """Title-cased last path segment, e.g. ``/blog/my-post`` -> ``My Post``."""
    segments = [s for s in _url_path(url).split("/") if s]
    if not segments:
        return ""
    last = _EXTENSION_RE.sub("", segments[-1])
    words = last.replace("-", " ").replace("_", " ").split()
    return " ".join(word.capitalize() for word in words)
