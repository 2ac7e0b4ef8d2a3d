"""
SEO Content Scorer
==================

Grades an article 0-100 for on-page SEO from five weighted categories and
keeps a per-category breakdown that UIs render as-is.

Categories (max points):
    1. Keyword optimization  (35) -- title, meta, intro, density, H2 headings
    2. Content structure     (25) -- H2/H3 counts, lists, tables, FAQ section
    3. Content length        (20) -- word-count bracket scaled by target ratio
    4. Meta quality          (12) -- title and meta description lengths
    5. Enrichment            (8)  -- image markers and markdown links

The total is ``round(100 * sum(score) / sum(max))``. Scoring is pure regex
and string work over the article's markdown body (HTML as fallback).

Usage:
    from seocore.seo_scorer import Article, Keyword, get_scorer

    article = Article(
        title="The Best Coffee Brewing Methods for Beginners",
        meta_description="Learn the best coffee brewing methods...",
        content_markdown=markdown,
        keyword=Keyword(phrase="coffee brewing", target_word_count=1500),
    )
    breakdown = get_scorer().calculate(article)
    print(breakdown.summary())

    for win in quick_wins(breakdown):
        print(win.points, win.label)
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from seocore.config import DEFAULT_TARGET_WORD_COUNT
from seocore.keyword_matcher import calculate_keyword_density, contains_keyword
from seocore.text import count_words, letter_words
from seocore.utils import get_logger

logger = get_logger("seo_scorer")

DetailValue = Union[bool, int, float, str]

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FIRST_WORDS_WINDOW = 150

# Keyword density window (percent) earning full credit
DENSITY_MIN = 0.5
DENSITY_MAX = 2.5

IDEAL_TITLE_LENGTH = (50, 60)
IDEAL_META_LENGTH = (150, 160)

QUICK_WIN_LIMIT = 5

_H2_HEADING_RE = re.compile(r"^##\s+(.+)$", re.MULTILINE)
_H2_MARKER_RE = re.compile(r"^##\s+", re.MULTILINE)
_H3_MARKER_RE = re.compile(r"^###\s+", re.MULTILINE)
_BULLET_LIST_RE = re.compile(r"^[\-\*]\s+", re.MULTILINE)
_NUMBERED_LIST_RE = re.compile(r"^\d+\.\s+", re.MULTILINE)
_TABLE_RE = re.compile(r"\|.+\|")
_FAQ_RE = re.compile(r"FAQ|Frequently Asked Questions", re.IGNORECASE)
_IMAGE_RE = re.compile(r"\[IMAGE:|!\[", re.IGNORECASE)
_LINK_RE = re.compile(r"\[.+\]\(.+\)")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ScoreCategory(str, Enum):
    """The five scored categories, in breakdown order."""

    KEYWORD_OPTIMIZATION = "keyword_optimization"
    CONTENT_STRUCTURE = "content_structure"
    CONTENT_LENGTH = "content_length"
    META_QUALITY = "meta_quality"
    ENRICHMENT = "enrichment"

    @property
    def max_score(self) -> int:
        return CATEGORY_MAX_SCORES[self]


CATEGORY_MAX_SCORES: Dict[ScoreCategory, int] = {
    ScoreCategory.KEYWORD_OPTIMIZATION: 35,
    ScoreCategory.CONTENT_STRUCTURE: 25,
    ScoreCategory.CONTENT_LENGTH: 20,
    ScoreCategory.META_QUALITY: 12,
    ScoreCategory.ENRICHMENT: 8,
}


class ScoreGrade(str, Enum):
    """Label for a 0-100 score."""

    EXCELLENT = "Excellent"    # 80-100
    GOOD = "Good"              # 60-79
    NEEDS_WORK = "Needs Work"  # 40-59
    POOR = "Poor"              # 0-39


class ImprovementType(str, Enum):
    """Automated rewrite actions a quick win can trigger."""

    ADD_KEYWORD_TO_TITLE = "add_keyword_to_title"
    ADD_KEYWORD_TO_META = "add_keyword_to_meta"
    ADD_KEYWORD_TO_INTRO = "add_keyword_to_intro"
    ADD_KEYWORD_TO_H2 = "add_keyword_to_h2"
    ADD_H2_HEADINGS = "add_h2_headings"
    ADD_TABLE = "add_table"
    ADD_LISTS = "add_lists"
    ADD_FAQ_SECTION = "add_faq_section"
    OPTIMIZE_TITLE_LENGTH = "optimize_title_length"
    OPTIMIZE_META_LENGTH = "optimize_meta_length"


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass
class Keyword:
    """Target keyword an article is written for."""

    phrase: str = ""
    secondary_phrases: List[str] = field(default_factory=list)
    target_word_count: Optional[int] = None

    def target_keywords(self) -> List[str]:
        """Primary phrase plus secondary phrases, empty entries dropped."""
        return [p for p in [self.phrase, *self.secondary_phrases] if p and p.strip()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phrase": self.phrase,
            "secondary_phrases": list(self.secondary_phrases),
            "target_word_count": self.target_word_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Keyword":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class Article:
    """An article as seen by the scorer."""

    title: str = ""
    meta_description: Optional[str] = None
    content_markdown: str = ""
    content: str = ""              # HTML, used when markdown is empty
    word_count: Optional[int] = None
    keyword: Optional[Keyword] = None
    article_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    seo_score: Optional[int] = None
    generation_metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def body(self) -> str:
        return self.content_markdown or self.content or ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "article_id": self.article_id,
            "title": self.title,
            "meta_description": self.meta_description,
            "content_markdown": self.content_markdown,
            "content": self.content,
            "word_count": self.word_count,
            "keyword": self.keyword.to_dict() if self.keyword else None,
            "seo_score": self.seo_score,
            "generation_metadata": self.generation_metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        data = dict(data)
        keyword = data.pop("keyword", None)
        article = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        if isinstance(keyword, dict):
            article.keyword = Keyword.from_dict(keyword)
        return article


@dataclass
class CategoryScore:
    """Score for a single category."""

    category: ScoreCategory
    score: int
    max_score: int
    details: Dict[str, DetailValue] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "max": self.max_score,
            "details": dict(self.details),
        }


@dataclass
class ScoreBreakdown:
    """Normalized total plus the per-category scores it was built from."""

    total_score: int
    categories: Dict[ScoreCategory, CategoryScore] = field(default_factory=dict)

    @property
    def grade(self) -> ScoreGrade:
        return score_grade(self.total_score)

    def get(self, category: ScoreCategory) -> CategoryScore:
        return self.categories[category]

    def breakdown_dict(self) -> Dict[str, Dict[str, Any]]:
        return {cat.value: cs.to_dict() for cat, cs in self.categories.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.total_score, "breakdown": self.breakdown_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoreBreakdown":
        categories: Dict[ScoreCategory, CategoryScore] = {}
        for name, entry in (data.get("breakdown") or {}).items():
            cat = ScoreCategory(name)
            categories[cat] = CategoryScore(
                category=cat,
                score=int(entry.get("score", 0)),
                max_score=int(entry.get("max", cat.max_score)),
                details=dict(entry.get("details") or {}),
            )
        return cls(total_score=int(data.get("score", 0)), categories=categories)

    def summary(self) -> str:
        """Return a human-readable summary of the breakdown."""
        lines = [
            f"{'=' * 60}",
            f"  SEO SCORE REPORT",
            f"{'=' * 60}",
            f"",
            f"  Overall Score:  {self.total_score}/100  ({self.grade.value})",
            f"",
            f"  Categories:",
        ]

        for cat in ScoreCategory:
            cs = self.categories.get(cat)
            if cs is None:
                continue
            label = cat.value.replace("_", " ").title()
            filled = int(round(10 * cs.score / cs.max_score)) if cs.max_score else 0
            bar = "#" * filled + "-" * (10 - filled)
            lines.append(f"    {label:<22} {cs.score:>3}/{cs.max_score:<3} [{bar}]")

        wins = quick_wins(self)
        if wins:
            lines.append(f"")
            lines.append(f"  Quick Wins:")
            for i, win in enumerate(wins, 1):
                lines.append(f"    {i}. {win.label} (+{win.points})")

        lines.append(f"")
        lines.append(f"{'=' * 60}")
        return "\n".join(lines)


@dataclass
class Improvement:
    """A missed check turned into an actionable suggestion."""

    label: str
    points: int
    category: ScoreCategory
    improvement_type: Optional[ImprovementType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "points": self.points,
            "category": self.category.value,
            "improvement_type": self.improvement_type.value if self.improvement_type else None,
        }


# ---------------------------------------------------------------------------
# Markdown detectors
# ---------------------------------------------------------------------------


def extract_h2_headings(content: str) -> List[str]:
    """Text of every ``## `` heading line."""
    return _H2_HEADING_RE.findall(content or "")


def count_h2_headings(content: str) -> int:
    return len(_H2_MARKER_RE.findall(content or ""))


def count_h3_headings(content: str) -> int:
    return len(_H3_MARKER_RE.findall(content or ""))


def has_lists(content: str) -> bool:
    """Bullet (``-``/``*``) or numbered (``1.``) list item at a line start."""
    content = content or ""
    return bool(_BULLET_LIST_RE.search(content) or _NUMBERED_LIST_RE.search(content))


def has_tables(content: str) -> bool:
    return bool(_TABLE_RE.search(content or ""))


def has_faq(content: str) -> bool:
    return bool(_FAQ_RE.search(content or ""))


def has_images(content: str) -> bool:
    """``[IMAGE: ...]`` placeholder or a markdown image."""
    return bool(_IMAGE_RE.search(content or ""))


def has_links(content: str) -> bool:
    return bool(_LINK_RE.search(content or ""))


def first_words(content: str, count: int = FIRST_WORDS_WINDOW) -> str:
    """The first ``count`` letter words of ``content`` joined by spaces."""
    return " ".join(letter_words(content)[:count])


# ---------------------------------------------------------------------------
# Grades & quick wins
# ---------------------------------------------------------------------------


def score_grade(score: int) -> ScoreGrade:
    """Convert a 0-100 score to its label."""
    if score >= 80:
        return ScoreGrade.EXCELLENT
    elif score >= 60:
        return ScoreGrade.GOOD
    elif score >= 40:
        return ScoreGrade.NEEDS_WORK
    else:
        return ScoreGrade.POOR


def quick_wins(breakdown: ScoreBreakdown, limit: int = QUICK_WIN_LIMIT) -> List[Improvement]:
    """Turn missed checks into improvements, most valuable first.

    Keyword items are skipped when the article has no keyword, since there
    is nothing to place. Ties keep their check order.
    """
    wins: List[Improvement] = []

    def details(cat: ScoreCategory) -> Dict[str, DetailValue]:
        cs = breakdown.categories.get(cat)
        return cs.details if cs else {}

    kw = details(ScoreCategory.KEYWORD_OPTIMIZATION)
    if kw and not kw.get("no_keyword"):
        checks = [
            ("keyword_in_title", "Add keyword to title", 10, ImprovementType.ADD_KEYWORD_TO_TITLE),
            ("keyword_in_meta", "Add keyword to meta description", 8, ImprovementType.ADD_KEYWORD_TO_META),
            ("keyword_in_first_150_words", "Mention keyword in first 150 words", 7,
             ImprovementType.ADD_KEYWORD_TO_INTRO),
            ("keyword_in_h2", "Include keyword in an H2 heading", 5, ImprovementType.ADD_KEYWORD_TO_H2),
        ]
        for key, label, points, itype in checks:
            if not kw.get(key):
                wins.append(Improvement(label, points, ScoreCategory.KEYWORD_OPTIMIZATION, itype))

    structure = details(ScoreCategory.CONTENT_STRUCTURE)
    if structure:
        missing_h2 = 3 - int(structure.get("h2_count", 0))
        if missing_h2 > 0:
            plural = "s" if missing_h2 > 1 else ""
            wins.append(Improvement(
                f"Add {missing_h2} more H2 heading{plural}", 4,
                ScoreCategory.CONTENT_STRUCTURE, ImprovementType.ADD_H2_HEADINGS,
            ))
        for key, label, itype in (
            ("has_tables", "Add a comparison or data table", ImprovementType.ADD_TABLE),
            ("has_lists", "Add bullet or numbered lists", ImprovementType.ADD_LISTS),
            ("has_faq", "Add an FAQ section", ImprovementType.ADD_FAQ_SECTION),
        ):
            if not structure.get(key):
                wins.append(Improvement(label, 4, ScoreCategory.CONTENT_STRUCTURE, itype))

    meta = details(ScoreCategory.META_QUALITY)
    if meta:
        lo, hi = IDEAL_TITLE_LENGTH
        title_length = int(meta.get("title_length", 0))
        if title_length < lo or title_length > hi:
            label = (
                f"Make title longer (aim for {lo}-{hi} chars)" if title_length < lo
                else f"Shorten title (aim for {lo}-{hi} chars)"
            )
            wins.append(Improvement(label, 3, ScoreCategory.META_QUALITY,
                                    ImprovementType.OPTIMIZE_TITLE_LENGTH))
        lo, hi = IDEAL_META_LENGTH
        meta_length = int(meta.get("meta_description_length", 0))
        if meta_length < lo or meta_length > hi:
            label = (
                f"Expand meta description (aim for {lo}-{hi} chars)" if meta_length < lo
                else f"Shorten meta description (aim for {lo}-{hi} chars)"
            )
            wins.append(Improvement(label, 3, ScoreCategory.META_QUALITY,
                                    ImprovementType.OPTIMIZE_META_LENGTH))

    enrichment = details(ScoreCategory.ENRICHMENT)
    if enrichment:
        if not enrichment.get("has_images"):
            wins.append(Improvement("Add images or image placeholders", 4, ScoreCategory.ENRICHMENT))
        if not enrichment.get("has_links"):
            wins.append(Improvement("Add internal or external links", 4, ScoreCategory.ENRICHMENT))

    wins.sort(key=lambda w: w.points, reverse=True)
    return wins[:limit]


# ---------------------------------------------------------------------------
# SeoScorer
# ---------------------------------------------------------------------------


class SeoScorer:
    """Scores articles and hands persistence to an article store.

    ``calculate`` is pure. ``calculate_and_save`` is the only operation with
    a side effect and delegates it to ``store.update_article``.
    """

    def __init__(self, store=None):
        self._store = store

    @property
    def store(self):
        if self._store is None:
            from seocore.article_store import ArticleStore

            self._store = ArticleStore()
        return self._store

    def calculate(self, article: Article) -> ScoreBreakdown:
        body = article.body
        scores = [
            self._score_keyword_optimization(article, body),
            self._score_content_structure(body),
            self._score_content_length(article, body),
            self._score_meta_quality(article),
            self._score_enrichment(body),
        ]

        total = sum(cs.score for cs in scores)
        maximum = sum(cs.max_score for cs in scores)
        normalized = int(round(total / maximum * 100)) if maximum > 0 else 0

        return ScoreBreakdown(
            total_score=normalized,
            categories={cs.category: cs for cs in scores},
        )

    def calculate_and_save(self, article: Article) -> int:
        breakdown = self.calculate(article)
        metadata = dict(article.generation_metadata or {})
        metadata["seo_breakdown"] = breakdown.breakdown_dict()

        self.store.update_article(
            article,
            seo_score=breakdown.total_score,
            generation_metadata=metadata,
        )
        logger.info(
            "Scored article %s: %d/100 (%s)",
            article.article_id[:12], breakdown.total_score, breakdown.grade.value,
        )
        return breakdown.total_score

    # -- categories ---------------------------------------------------------

    def _score_keyword_optimization(self, article: Article, body: str) -> CategoryScore:
        category = ScoreCategory.KEYWORD_OPTIMIZATION
        phrase = article.keyword.phrase if article.keyword else ""
        if not phrase:
            return CategoryScore(category, 0, category.max_score, {"no_keyword": True})

        details: Dict[str, DetailValue] = {}
        score = 0

        details["keyword_in_title"] = contains_keyword(article.title or "", phrase)
        if details["keyword_in_title"]:
            score += 10

        details["keyword_in_meta"] = contains_keyword(article.meta_description or "", phrase)
        if details["keyword_in_meta"]:
            score += 8

        details["keyword_in_first_150_words"] = contains_keyword(first_words(body), phrase)
        if details["keyword_in_first_150_words"]:
            score += 7

        density = calculate_keyword_density(body, phrase)
        details["keyword_density"] = round(density, 2)
        if DENSITY_MIN <= density <= DENSITY_MAX:
            score += 5
        elif 0 < density < DENSITY_MIN:
            score += 2

        details["keyword_in_h2"] = any(
            contains_keyword(heading, phrase) for heading in extract_h2_headings(body)
        )
        if details["keyword_in_h2"]:
            score += 5

        return CategoryScore(category, score, category.max_score, details)

    def _score_content_structure(self, body: str) -> CategoryScore:
        category = ScoreCategory.CONTENT_STRUCTURE
        details: Dict[str, DetailValue] = {}
        score = 0

        h2_count = count_h2_headings(body)
        details["h2_count"] = h2_count
        if h2_count >= 5:
            score += 8
        elif h2_count >= 3:
            score += 6
        elif h2_count >= 1:
            score += 3

        h3_count = count_h3_headings(body)
        details["h3_count"] = h3_count
        if h3_count >= 4:
            score += 5
        elif h3_count >= 2:
            score += 3
        elif h3_count >= 1:
            score += 1

        for key, detector in (
            ("has_lists", has_lists),
            ("has_tables", has_tables),
            ("has_faq", has_faq),
        ):
            details[key] = detector(body)
            if details[key]:
                score += 4

        return CategoryScore(category, score, category.max_score, details)

    def _score_content_length(self, article: Article, body: str) -> CategoryScore:
        category = ScoreCategory.CONTENT_LENGTH
        word_count = article.word_count or count_words(body)
        target = DEFAULT_TARGET_WORD_COUNT
        if article.keyword is not None and article.keyword.target_word_count is not None:
            target = article.keyword.target_word_count

        details: Dict[str, DetailValue] = {
            "word_count": word_count,
            "target_word_count": target,
        }

        if word_count < 500:
            score = 5
        elif word_count < 1000:
            score = 10
        elif word_count < 1500:
            score = 15
        elif word_count <= 2500:
            score = 20
        else:
            score = 18

        if target > 0:
            ratio = word_count / target
            details["target_ratio"] = round(ratio, 2)
            if ratio < 0.5:
                score = int(score * 0.5)
            elif ratio < 0.7:
                score = int(score * 0.7)
            elif ratio < 0.9:
                score = int(score * 0.9)

        return CategoryScore(category, score, category.max_score, details)

    def _score_meta_quality(self, article: Article) -> CategoryScore:
        category = ScoreCategory.META_QUALITY
        score = 0

        title_length = len(article.title or "")
        if 50 <= title_length <= 60:
            score += 6
        elif 40 <= title_length <= 70:
            score += 4
        elif 30 <= title_length <= 80:
            score += 2

        meta_length = len(article.meta_description or "")
        if 150 <= meta_length <= 160:
            score += 6
        elif 120 <= meta_length <= 170:
            score += 4
        elif 80 <= meta_length <= 200:
            score += 2

        details: Dict[str, DetailValue] = {
            "title_length": title_length,
            "meta_description_length": meta_length,
        }
        return CategoryScore(category, score, category.max_score, details)

    def _score_enrichment(self, body: str) -> CategoryScore:
        category = ScoreCategory.ENRICHMENT
        details: Dict[str, DetailValue] = {
            "has_images": has_images(body),
            "has_links": has_links(body),
        }
        score = 4 * int(details["has_images"]) + 4 * int(details["has_links"])
        return CategoryScore(category, score, category.max_score, details)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_scorer_instance: Optional[SeoScorer] = None


def get_scorer() -> SeoScorer:
    """Return the shared SeoScorer instance."""
    global _scorer_instance
    if _scorer_instance is None:
        _scorer_instance = SeoScorer()
    return _scorer_instance
