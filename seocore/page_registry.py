"""
Page Registry
=============

Known pages of each project's site, the pool internal links are chosen
from. Pages are keyed by ``(project_id, url)`` and carry the sitemap
priority, URL-derived keywords and the number of times each page has been
linked from generated articles.

Storage is in-memory when no ``data_dir`` is given. Otherwise each project
is one JSON file (``<data_dir>/<percent-encoded project_id>.json``) holding
its settings and pages, written atomically on every change.

Usage:
    from seocore.page_registry import PageRegistry, ProjectSettings

    registry = PageRegistry(data_dir="data/pages")
    project = ProjectSettings(project_id="acme", prioritize_blog_links=True)
    registry.save_project(project)
    registry.add_page("acme", "https://acme.com/blog/coffee-grinders")
    print(registry.stats(project))
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import quote

from seocore.config import (
    DEFAULT_LINKS_PER_ARTICLE,
    DEFAULT_PAGE_PRIORITY,
    MAX_LINKS_PER_ARTICLE,
)
from seocore.page_classifier import (
    PageType,
    classify_page_type,
    extract_keywords_from_url,
    extract_title_from_url,
)
from seocore.utils import get_logger, load_json, now_iso, save_json

logger = get_logger("page_registry")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PageRegistryError(Exception):
    """Base error for page registry operations."""

    def __init__(self, message: str, project_id: str = "", url: str = ""):
        super().__init__(message)
        self.project_id = project_id
        self.url = url


class DuplicatePageError(PageRegistryError):
    """The URL is already registered for the project."""


class PageNotFoundError(PageRegistryError):
    """No page with that URL exists for the project."""


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass
class ProjectSettings:
    """Per-project settings that drive sitemap sync and link selection."""

    project_id: str
    sitemap_url: Optional[str] = None
    prioritize_blog_links: bool = False
    internal_links_per_article: int = DEFAULT_LINKS_PER_ARTICLE
    sitemap_last_fetched_at: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.internal_links_per_article <= MAX_LINKS_PER_ARTICLE:
            raise ValueError(
                f"internal_links_per_article must be between 0 and "
                f"{MAX_LINKS_PER_ARTICLE}, got {self.internal_links_per_article}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "sitemap_url": self.sitemap_url,
            "prioritize_blog_links": self.prioritize_blog_links,
            "internal_links_per_article": self.internal_links_per_article,
            "sitemap_last_fetched_at": self.sitemap_last_fetched_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectSettings":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class Page:
    """A known page of a project's site."""

    project_id: str
    url: str
    title: str = ""
    page_type: PageType = PageType.OTHER
    keywords: List[str] = field(default_factory=list)
    priority: float = DEFAULT_PAGE_PRIORITY   # 0-1, from the sitemap
    link_count: int = 0
    is_active: bool = True
    last_modified_at: Optional[str] = None
    last_fetched_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "url": self.url,
            "title": self.title,
            "page_type": self.page_type.value,
            "keywords": list(self.keywords),
            "priority": self.priority,
            "link_count": self.link_count,
            "is_active": self.is_active,
            "last_modified_at": self.last_modified_at,
            "last_fetched_at": self.last_fetched_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Page":
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "page_type" in filtered:
            filtered["page_type"] = PageType(filtered["page_type"])
        return cls(**filtered)


# ---------------------------------------------------------------------------
# PageRegistry
# ---------------------------------------------------------------------------


class PageRegistry:
    """Thread-safe store of pages per project."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self._data_dir = Path(data_dir) if data_dir else None
        self._lock = threading.RLock()
        self._pages: Dict[str, Dict[str, Page]] = {}
        self._projects: Dict[str, ProjectSettings] = {}

    # -- persistence --------------------------------------------------------

    def _project_file(self, project_id: str) -> Path:
        # one file per project ID; percent-encoding keeps IDs distinct
        return self._data_dir / f"{quote(project_id, safe='')}.json"

    def _ensure_loaded(self, project_id: str) -> Dict[str, Page]:
        if project_id in self._pages:
            return self._pages[project_id]

        pages: Dict[str, Page] = {}
        if self._data_dir is not None:
            raw = load_json(self._project_file(project_id), {}) or {}
            for entry in raw.get("pages", []):
                page = Page.from_dict(entry)
                if page.project_id != project_id:
                    logger.warning(
                        "Skipping page %s of project %s found in the file for %s",
                        page.url, page.project_id, project_id,
                    )
                    continue
                pages[page.url] = page
            stored_project = raw.get("project")
            if stored_project and stored_project.get("project_id") == project_id:
                self._projects[project_id] = ProjectSettings.from_dict(stored_project)
            logger.debug("Loaded %d pages for project %s", len(pages), project_id)

        self._pages[project_id] = pages
        return pages

    def _persist(self, project_id: str) -> None:
        if self._data_dir is None:
            return
        project = self._projects.get(project_id)
        save_json(self._project_file(project_id), {
            "project": project.to_dict() if project else None,
            "pages": [p.to_dict() for p in self._pages.get(project_id, {}).values()],
        })

    # -- projects -----------------------------------------------------------

    def get_project(self, project_id: str) -> ProjectSettings:
        """Stored settings for ``project_id``, or defaults when none are saved."""
        with self._lock:
            self._ensure_loaded(project_id)
            return self._projects.get(project_id) or ProjectSettings(project_id=project_id)

    def save_project(self, project: ProjectSettings) -> None:
        with self._lock:
            self._ensure_loaded(project.project_id)
            self._projects[project.project_id] = project
            self._persist(project.project_id)

    # -- pages --------------------------------------------------------------

    def get(self, project_id: str, url: str) -> Optional[Page]:
        with self._lock:
            return self._ensure_loaded(project_id).get(url)

    def pages_for(self, project_id: str, active_only: bool = False) -> List[Page]:
        with self._lock:
            pages = list(self._ensure_loaded(project_id).values())
        if active_only:
            pages = [p for p in pages if p.is_active]
        return pages

    def upsert(self, page: Page) -> Tuple[Page, bool]:
        """Insert or replace ``page``. Returns ``(page, created)``."""
        with self._lock:
            pages = self._ensure_loaded(page.project_id)
            created = page.url not in pages
            pages[page.url] = page
            self._persist(page.project_id)
        return page, created

    def add_page(
        self,
        project_id: str,
        url: str,
        title: Optional[str] = None,
        page_type: Optional[PageType] = None,
        priority: Optional[float] = None,
        keywords: Optional[List[str]] = None,
    ) -> Page:
        """Manually register a page, deriving missing fields from the URL."""
        if priority is not None and not 0.0 <= priority <= 1.0:
            raise ValueError(f"priority must be between 0 and 1, got {priority}")

        with self._lock:
            pages = self._ensure_loaded(project_id)
            if url in pages:
                raise DuplicatePageError(
                    f"{url} already exists in the internal pages of {project_id}",
                    project_id=project_id, url=url,
                )
            page = Page(
                project_id=project_id,
                url=url,
                title=title if title is not None else extract_title_from_url(url),
                page_type=PageType(page_type) if page_type else classify_page_type(url),
                keywords=list(keywords) if keywords is not None else extract_keywords_from_url(url),
                priority=priority if priority is not None else DEFAULT_PAGE_PRIORITY,
            )
            pages[url] = page
            self._persist(project_id)

        logger.info("Added page %s to project %s (%s)", url, project_id, page.page_type.value)
        return page

    def _require(self, project_id: str, url: str) -> Page:
        page = self._ensure_loaded(project_id).get(url)
        if page is None:
            raise PageNotFoundError(
                f"No page {url} in project {project_id}", project_id=project_id, url=url,
            )
        return page

    def set_active(self, project_id: str, url: str, active: bool) -> Page:
        with self._lock:
            page = self._require(project_id, url)
            page.is_active = active
            self._persist(project_id)
        return page

    def remove(self, project_id: str, url: str) -> None:
        with self._lock:
            self._require(project_id, url)
            del self._pages[project_id][url]
            self._persist(project_id)
        logger.info("Removed page %s from project %s", url, project_id)

    def increment_link_count(self, page: Page) -> int:
        """Record one more link to ``page``. Returns the new count."""
        with self._lock:
            stored = self._require(page.project_id, page.url)
            stored.link_count += 1
            page.link_count = stored.link_count
            self._persist(page.project_id)
            return stored.link_count

    def search(self, project_id: str, query: str) -> List[Page]:
        """Pages whose URL or title contains ``query`` (case-insensitive)."""
        needle = (query or "").lower()
        return [
            p for p in self.pages_for(project_id)
            if needle in p.url.lower() or needle in (p.title or "").lower()
        ]

    def list_pages(
        self,
        project_id: str,
        page_type: Optional[PageType] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[Page]:
        """Filtered listing, least-linked first, then highest priority."""
        pages = self.search(project_id, search) if search else self.pages_for(project_id)
        if page_type is not None:
            pages = [p for p in pages if p.page_type == PageType(page_type)]
        if is_active is not None:
            pages = [p for p in pages if p.is_active == is_active]
        return sorted(pages, key=lambda p: (p.link_count, -p.priority))

    def stats(self, project: ProjectSettings) -> Dict[str, Any]:
        pages = self.pages_for(project.project_id)
        active = [p for p in pages if p.is_active]
        return {
            "total": len(pages),
            "active": len(active),
            "by_type": {
                pt.value: sum(1 for p in active if p.page_type == pt) for pt in PageType
            },
            "total_links_distributed": sum(p.link_count for p in pages),
            "last_fetched": project.sitemap_last_fetched_at,
        }

    def touch(self, page: Page, **fields: Any) -> Page:
        """Update fields of a stored page and stamp ``last_fetched_at``."""
        with self._lock:
            stored = self._require(page.project_id, page.url)
            for name, value in fields.items():
                setattr(stored, name, value)
            stored.last_fetched_at = now_iso()
            self._persist(page.project_id)
            return stored
