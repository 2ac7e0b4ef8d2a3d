"""
SEO Content Core

Content-quality scoring and internal-link ranking for AI-written articles.
Keyword variation matching, a 0-100 SEO score with per-category breakdown,
sitemap-driven page classification, and a link relevance ranker that spreads
internal links evenly across a site.

Usage:
    from seocore.seo_scorer import Article, Keyword, SeoScorer

    scorer = SeoScorer()
    breakdown = scorer.calculate(
        Article(title="Best Coffee Makers", content_markdown="## Why...",
                keyword=Keyword(phrase="best coffee makers"))
    )
    print(breakdown.total_score)
"""

__version__ = "1.0.0"
