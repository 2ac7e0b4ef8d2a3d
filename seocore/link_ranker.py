"""
Link Relevance Ranker
=====================

Chooses which known pages a newly generated article should link to.

Every active page gets a relevance score from its sitemap priority, keyword
overlap with the article's target keywords, and its type, minus a small
penalty per existing inbound link. Candidates start out least-linked first
(blog pages first when the project prefers them) and the scored list is
stably sorted, so ties keep that fairness order. Re-ranking per article
with an up-to-date ``link_count`` spreads links across the site over time.

Usage:
    from seocore.link_ranker import LinkRanker

    ranker = LinkRanker(registry)
    pages = ranker.get_relevant_pages_for_article(
        project, content=markdown, keywords=keyword.target_keywords(),
    )
    for page in pages_actually_linked:
        ranker.increment_link_count(page)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from seocore.page_classifier import PageType
from seocore.page_registry import Page, PageRegistry, ProjectSettings
from seocore.utils import get_logger

logger = get_logger("link_ranker")

# ---------------------------------------------------------------------------
# Scoring weights
# ---------------------------------------------------------------------------

PRIORITY_WEIGHT = 30.0
HIGH_PRIORITY_THRESHOLD = 0.8
HIGH_PRIORITY_BONUS = 15.0
KEYWORD_MATCH_BONUS = 20.0
TITLE_MATCH_BONUS = 15.0
URL_MATCH_BONUS = 10.0
BLOG_BONUS = 5.0
LINK_COUNT_PENALTY = 0.5


@dataclass
class RankedPage:
    page: Page
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"page": self.page.to_dict(), "score": round(self.score, 2)}


def select_candidates(pages: Sequence[Page], project: ProjectSettings) -> List[Page]:
    """Active pages, least-linked first; blog pages lead when the project prefers them."""
    active = [p for p in pages if p.is_active]
    if project.prioritize_blog_links:
        return sorted(active, key=lambda p: (p.page_type != PageType.BLOG, p.link_count))
    return sorted(active, key=lambda p: p.link_count)


def score_page(page: Page, target_keywords: Sequence[str], content: str = "") -> float:
    """Relevance of ``page`` for an article targeting ``target_keywords``.

    ``content`` is accepted for callers that pass the article body; the score
    is currently driven by keywords alone.
    """
    score = page.priority * PRIORITY_WEIGHT
    if page.priority >= HIGH_PRIORITY_THRESHOLD:
        score += HIGH_PRIORITY_BONUS

    page_keywords = [k.lower() for k in (page.keywords or []) if k]
    title = (page.title or "").lower()
    url = page.url.lower()

    for keyword in target_keywords:
        keyword = (keyword or "").lower()
        if not keyword:
            continue
        if any(keyword in pk or pk in keyword for pk in page_keywords):
            score += KEYWORD_MATCH_BONUS
        if keyword in title:
            score += TITLE_MATCH_BONUS
        if keyword in url:
            score += URL_MATCH_BONUS

    if page.page_type == PageType.BLOG:
        score += BLOG_BONUS

    score -= page.link_count * LINK_COUNT_PENALTY
    return max(0.0, score)


def rank_pages(
    pages: Sequence[Page],
    project: ProjectSettings,
    target_keywords: Sequence[str],
    content: str = "",
) -> List[RankedPage]:
    """Score every candidate and sort by score, keeping candidate order on ties."""
    ranked = [
        RankedPage(page=page, score=score_page(page, target_keywords, content))
        for page in select_candidates(pages, project)
    ]
    ranked.sort(key=lambda r: r.score, reverse=True)
    return ranked


class LinkRanker:
    """Ranks a project's registered pages for internal linking."""

    def __init__(self, registry: PageRegistry):
        self.registry = registry

    def rank(
        self,
        project: ProjectSettings,
        content: str,
        keywords: Sequence[str],
    ) -> List[RankedPage]:
        pages = self.registry.pages_for(project.project_id)
        return rank_pages(pages, project, keywords, content)

    def get_relevant_pages_for_article(
        self,
        project: ProjectSettings,
        content: str,
        keywords: Sequence[str],
        limit: Optional[int] = None,
    ) -> List[Page]:
        """Top ``limit`` pages to link from an article about ``keywords``.

        ``limit`` defaults to the project's ``internal_links_per_article``.
        """
        if limit is None:
            limit = project.internal_links_per_article
        ranked = self.rank(project, content, keywords)
        selected = [r.page for r in ranked[:max(0, limit)]]
        logger.debug(
            "Selected %d of %d candidate pages for project %s",
            len(selected), len(ranked), project.project_id,
        )
        return selected

    def increment_link_count(self, page: Page) -> int:
        """Record that ``page`` was linked from a published article."""
        return self.registry.increment_link_count(page)
