"""
Command line interface for the SEO content core.

    python -m seocore.cli score --content article.md --title "Best Coffee Grinders" --keyword "coffee grinder"
    python -m seocore.cli score --stdin --title "Best Coffee Grinders" --json
    python -m seocore.cli classify https://acme.com/blog/post https://acme.com/shop/item
    python -m seocore.cli sync --project acme --sitemap-url https://acme.com/sitemap.xml
    python -m seocore.cli rank --project acme --keywords "coffee grinder,burr grinder" --limit 5
    python -m seocore.cli pages --project acme --search grinder
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from seocore.config import DATA_DIR, MAX_LINKS_PER_ARTICLE
from seocore.page_classifier import (
    PageType,
    classify_page_type,
    extract_keywords_from_url,
    extract_title_from_url,
)
from seocore.page_registry import PageRegistry, PageRegistryError, ProjectSettings
from seocore.seo_scorer import Article, Keyword, SeoScorer, quick_wins
from seocore.sitemap import SitemapError, SitemapFetcher, sync_pages_to_project


def _split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _registry(args: argparse.Namespace) -> PageRegistry:
    return PageRegistry(data_dir=Path(args.data_dir) / "pages")


def _read_file(path: str) -> str:
    content_path = Path(path)
    if not content_path.exists():
        print(f"Error: File not found: {content_path}", file=sys.stderr)
        sys.exit(1)
    return content_path.read_text(encoding="utf-8", errors="replace")


def _read_content(args: argparse.Namespace) -> str:
    if args.stdin:
        content = sys.stdin.read()
        if not content.strip():
            print("Error: No content received on stdin.", file=sys.stderr)
            sys.exit(1)
        return content
    if args.content:
        return _read_file(args.content)
    print("Error: Provide --content FILE or --stdin.", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cli_score(args: argparse.Namespace) -> None:
    """Handle the 'score' CLI command."""
    content = _read_content(args)

    keyword = None
    if args.keyword:
        keyword = Keyword(
            phrase=args.keyword,
            secondary_phrases=_split_csv(args.secondary),
            target_word_count=args.target_words,
        )

    article = Article(
        title=args.title,
        meta_description=args.meta,
        content_markdown=content,
        word_count=args.word_count,
        keyword=keyword,
    )

    if args.save:
        from seocore.article_store import ArticleStore

        scorer = SeoScorer(store=ArticleStore(Path(args.data_dir) / "articles"))
        scorer.calculate_and_save(article)
        print(f"Saved score for article {article.article_id}")
    else:
        scorer = SeoScorer()

    breakdown = scorer.calculate(article)
    print(breakdown.summary())

    if args.json:
        print("\n--- JSON Report ---")
        report = breakdown.to_dict()
        report["grade"] = breakdown.grade.value
        report["quick_wins"] = [w.to_dict() for w in quick_wins(breakdown)]
        print(json.dumps(report, indent=2, ensure_ascii=False))


def _cli_classify(args: argparse.Namespace) -> None:
    """Handle the 'classify' CLI command."""
    for url in args.urls:
        page_type = classify_page_type(url)
        title = extract_title_from_url(url) or "-"
        keywords = ", ".join(extract_keywords_from_url(url)) or "-"
        print(f"  {page_type.value:<8} {url}")
        print(f"           title: {title}")
        print(f"           keywords: {keywords}")


def _cli_sync(args: argparse.Namespace) -> None:
    """Handle the 'sync' CLI command."""
    registry = _registry(args)
    project = registry.get_project(args.project)
    if args.sitemap_url:
        project.sitemap_url = args.sitemap_url
    if args.links_per_article is not None:
        project = ProjectSettings.from_dict({
            **project.to_dict(), "internal_links_per_article": args.links_per_article,
        })

    entries = SitemapFetcher().fetch_and_parse_sync(project)
    stats = sync_pages_to_project(project, entries, registry)
    registry.save_project(project)

    print(
        f"Sitemap synced for '{project.project_id}'. "
        f"Created: {stats.created}, Updated: {stats.updated}, Total: {stats.total}"
    )


def _cli_rank(args: argparse.Namespace) -> None:
    """Handle the 'rank' CLI command."""
    from seocore.link_ranker import LinkRanker

    registry = _registry(args)
    project = registry.get_project(args.project)
    if args.prioritize_blog:
        project.prioritize_blog_links = True

    content = ""
    if args.content:
        content = _read_file(args.content)

    ranked = LinkRanker(registry).rank(project, content, _split_csv(args.keywords))
    if not ranked:
        print(f"No active pages for project '{args.project}'.")
        return

    print(f"\n  {'Score':>7}  {'Links':>5}  {'Type':<8} URL")
    print(f"  {'-' * 7}  {'-' * 5}  {'-' * 8} {'-' * 40}")
    limit = args.limit if args.limit is not None else project.internal_links_per_article
    for r in ranked[:limit]:
        print(
            f"  {r.score:>7.1f}  {r.page.link_count:>5}  "
            f"{r.page.page_type.value:<8} {r.page.url}"
        )
    print()


def _cli_pages(args: argparse.Namespace) -> None:
    """Handle the 'pages' CLI command."""
    registry = _registry(args)
    project = registry.get_project(args.project)

    if args.add:
        page = registry.add_page(
            args.project, args.add,
            page_type=PageType(args.type) if args.type else None,
            priority=args.priority,
        )
        print(f"Added {page.url} as {page.page_type.value}")
        return

    stats = registry.stats(project)
    by_type = ", ".join(f"{k}={v}" for k, v in stats["by_type"].items())
    print(f"\n  Project:        {project.project_id}")
    print(f"  Pages:          {stats['total']} ({stats['active']} active)")
    print(f"  By type:        {by_type}")
    print(f"  Links placed:   {stats['total_links_distributed']}")
    print(f"  Last fetched:   {stats['last_fetched'] or 'never'}\n")

    pages = registry.list_pages(
        args.project,
        page_type=PageType(args.type) if args.type else None,
        search=args.search,
    )
    for page in pages[:args.limit]:
        flag = " " if page.is_active else "x"
        print(
            f"  [{flag}] {page.link_count:>4}  {page.priority:.2f}  "
            f"{page.page_type.value:<8} {page.url}"
        )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seocore",
        description=(
            "SEO content core: score articles for on-page SEO, classify site "
            "pages and rank internal link targets."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- score ---
    sub_score = subparsers.add_parser("score", help="Score article content for SEO")
    sub_score.add_argument("--content", help="Path to markdown/HTML content file")
    sub_score.add_argument("--stdin", action="store_true", help="Read content from stdin")
    sub_score.add_argument("--title", required=True, help="Article title")
    sub_score.add_argument("--meta", help="Meta description")
    sub_score.add_argument("--keyword", help="Primary target keyword")
    sub_score.add_argument("--secondary", help="Comma-separated secondary keywords")
    sub_score.add_argument("--target-words", type=int, help="Target word count (default: 1500)")
    sub_score.add_argument("--word-count", type=int, help="Known word count (default: derived)")
    sub_score.add_argument("--save", action="store_true", help="Persist the score to the article store")
    sub_score.add_argument("--data-dir", default=str(DATA_DIR), help="Data directory")
    sub_score.add_argument("--json", action="store_true", help="Also output the JSON breakdown")
    sub_score.set_defaults(func=_cli_score)

    # --- classify ---
    sub_classify = subparsers.add_parser("classify", help="Classify URLs by page type")
    sub_classify.add_argument("urls", nargs="+", help="URLs to classify")
    sub_classify.set_defaults(func=_cli_classify)

    # --- sync ---
    sub_sync = subparsers.add_parser("sync", help="Fetch a sitemap and sync its pages")
    sub_sync.add_argument("--project", required=True, help="Project ID")
    sub_sync.add_argument("--sitemap-url", help="Sitemap URL (saved on the project)")
    sub_sync.add_argument("--links-per-article", type=int,
                          help=f"Links per article, 0-{MAX_LINKS_PER_ARTICLE} (saved on the project)")
    sub_sync.add_argument("--data-dir", default=str(DATA_DIR), help="Data directory")
    sub_sync.set_defaults(func=_cli_sync)

    # --- rank ---
    sub_rank = subparsers.add_parser("rank", help="Rank internal link targets")
    sub_rank.add_argument("--project", required=True, help="Project ID")
    sub_rank.add_argument("--keywords", required=True, help="Comma-separated target keywords")
    sub_rank.add_argument("--limit", type=int,
                          help="Pages to show (default: the project's links per article)")
    sub_rank.add_argument("--prioritize-blog", action="store_true", help="Put blog pages first")
    sub_rank.add_argument("--content", help="Path to the article body")
    sub_rank.add_argument("--data-dir", default=str(DATA_DIR), help="Data directory")
    sub_rank.set_defaults(func=_cli_rank)

    # --- pages ---
    sub_pages = subparsers.add_parser("pages", help="Show or add project pages")
    sub_pages.add_argument("--project", required=True, help="Project ID")
    sub_pages.add_argument("--search", help="Filter by URL or title")
    sub_pages.add_argument("--type", choices=[t.value for t in PageType], help="Page type")
    sub_pages.add_argument("--add", metavar="URL", help="Register a page manually")
    sub_pages.add_argument("--priority", type=float, help="Priority for --add (0-1)")
    sub_pages.add_argument("--limit", type=int, default=50, help="Pages to list (default: 50)")
    sub_pages.add_argument("--data-dir", default=str(DATA_DIR), help="Data directory")
    sub_pages.set_defaults(func=_cli_pages)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        sys.exit(0)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except (SitemapError, PageRegistryError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
