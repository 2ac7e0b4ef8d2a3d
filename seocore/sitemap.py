"""
Sitemap Sync
============

Fetches a project's XML sitemap, expands sitemap indexes, and syncs the
discovered URLs into the page registry as classified pages.

Both plain ``<urlset>`` sitemaps and ``<sitemapindex>`` documents are
accepted, with or without the sitemaps.org namespace. Transient HTTP
failures (429/5xx, timeouts, connection errors) are retried with
exponential backoff; a child sitemap that still fails is logged and
skipped so one broken file does not sink the whole sync.

Usage:
    from seocore.page_registry import PageRegistry, ProjectSettings
    from seocore.sitemap import SitemapFetcher, sync_pages_to_project

    project = ProjectSettings(project_id="acme", sitemap_url="https://acme.com/sitemap.xml")
    async with SitemapFetcher() as fetcher:
        entries = await fetcher.fetch_and_parse(project)
    stats = sync_pages_to_project(project, entries, PageRegistry())

CLI:
    python -m seocore.cli sync --project acme --sitemap-url https://acme.com/sitemap.xml
"""

from __future__ import annotations

import asyncio
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import aiohttp

from seocore.config import (
    DEFAULT_PAGE_PRIORITY,
    SITEMAP_MAX_DEPTH,
    SITEMAP_MAX_RETRIES,
    SITEMAP_RETRY_BASE_DELAY,
    SITEMAP_RETRY_STATUS_CODES,
    SITEMAP_TIMEOUT,
    USER_AGENT,
)
from seocore.page_classifier import (
    classify_page_type,
    extract_keywords_from_url,
    extract_title_from_url,
)
from seocore.page_registry import Page, PageRegistry, ProjectSettings
from seocore.utils import get_logger, now_iso, run_sync

logger = get_logger("sitemap")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SitemapError(Exception):
    """Base exception for sitemap fetch and parse errors."""

    def __init__(self, message: str, status_code: int = 0, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class SitemapNotConfiguredError(SitemapError):
    """Raised when a project has no sitemap URL."""
    pass


class SitemapFetchError(SitemapError):
    """Raised on non-2xx responses or network errors after retries."""
    pass


class SitemapParseError(SitemapError):
    """Raised when the sitemap body is not well-formed XML."""
    pass


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass
class SitemapEntry:
    """One ``<url>`` entry of a sitemap."""

    url: str
    lastmod: Optional[str] = None
    priority: float = DEFAULT_PAGE_PRIORITY

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "lastmod": self.lastmod, "priority": self.priority}


@dataclass
class SitemapDocument:
    """A parsed sitemap: URL entries plus child sitemap locations."""

    entries: List[SitemapEntry] = field(default_factory=list)
    child_sitemaps: List[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return bool(self.child_sitemaps)


@dataclass
class SyncStats:
    created: int = 0
    updated: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"created": self.created, "updated": self.updated, "total": self.total}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name:
            text = (child.text or "").strip()
            return text or None
    return None


def _parse_priority(raw: Optional[str]) -> float:
    if raw is None:
        return DEFAULT_PAGE_PRIORITY
    try:
        return float(raw)
    except ValueError:
        logger.debug("Ignoring invalid sitemap priority %r", raw)
        return DEFAULT_PAGE_PRIORITY


def parse_sitemap_xml(xml: Union[str, bytes]) -> SitemapDocument:
    """Parse a sitemap or sitemap index document.

    Raises:
        SitemapParseError: if ``xml`` is not well-formed.
    """
    if isinstance(xml, str):
        # ElementTree rejects str input that carries an encoding declaration
        xml = xml.encode("utf-8")
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        logger.error("Sitemap XML parsing failed: %s", exc)
        raise SitemapParseError(f"Failed to parse sitemap XML: {exc}") from exc

    doc = SitemapDocument()
    for element in root:
        name = _local_name(element.tag)
        loc = _child_text(element, "loc")
        if not loc:
            continue
        if name == "sitemap":
            doc.child_sitemaps.append(loc)
        elif name == "url":
            doc.entries.append(SitemapEntry(
                url=loc,
                lastmod=_child_text(element, "lastmod"),
                priority=_parse_priority(_child_text(element, "priority")),
            ))
    return doc


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class SitemapFetcher:
    """Async sitemap downloader with retry and index expansion."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: int = SITEMAP_TIMEOUT,
        max_retries: int = SITEMAP_MAX_RETRIES,
        max_depth: int = SITEMAP_MAX_DEPTH,
    ):
        self._session = session
        self._owns_session = session is None
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_depth = max_depth

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "User-Agent": USER_AGENT,
                    "Accept": "application/xml, text/xml;q=0.9, */*;q=0.8",
                },
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def fetch_text(self, url: str) -> str:
        """GET ``url`` and return the body, retrying transient failures."""
        session = await self._get_session()
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                logger.debug(
                    "GET %s (attempt %d/%d)", url, attempt + 1, self.max_retries + 1
                )
                async with session.get(url) as resp:
                    status = resp.status

                    if status in SITEMAP_RETRY_STATUS_CODES and attempt < self.max_retries:
                        delay = SITEMAP_RETRY_BASE_DELAY * (2 ** attempt)
                        logger.warning(
                            "Retryable error %d from %s, retrying in %.1fs",
                            status, url, delay,
                        )
                        await asyncio.sleep(delay)
                        continue

                    if not 200 <= status < 300:
                        raise SitemapFetchError(
                            f"Failed to fetch sitemap: HTTP {status}",
                            status_code=status,
                            url=url,
                        )

                    return await resp.text()

            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                last_error = exc
                if attempt < self.max_retries:
                    delay = SITEMAP_RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "Network error on %s (%s), retrying in %.1fs: %s",
                        url, type(exc).__name__, delay, exc,
                    )
                    await asyncio.sleep(delay)
                else:
                    raise SitemapFetchError(
                        f"Network error after {self.max_retries} retries for {url}: {exc}",
                        url=url,
                    ) from exc

        raise SitemapFetchError(
            f"Request failed after {self.max_retries} retries: {last_error}", url=url
        )

    async def _collect(self, url: str, depth: int) -> List[SitemapEntry]:
        doc = parse_sitemap_xml(await self.fetch_text(url))
        entries: List[SitemapEntry] = []

        for child_url in doc.child_sitemaps:
            if depth >= self.max_depth:
                logger.warning(
                    "Skipping sub-sitemap %s: index nesting deeper than %d",
                    child_url, self.max_depth,
                )
                continue
            try:
                entries.extend(await self._collect(child_url, depth + 1))
            except SitemapError as exc:
                logger.warning("Failed to fetch sub-sitemap %s: %s", child_url, exc)

        entries.extend(doc.entries)
        return entries

    async def fetch_and_parse(self, project: ProjectSettings) -> List[SitemapEntry]:
        """Fetch the project's sitemap (and any children) and return all URL entries.

        Stamps ``project.sitemap_last_fetched_at`` on success.
        """
        if not project.sitemap_url:
            raise SitemapNotConfiguredError(
                f"Project {project.project_id!r} does not have a sitemap URL configured."
            )

        try:
            entries = await self._collect(project.sitemap_url, depth=0)
        except SitemapError as exc:
            logger.error(
                "Sitemap fetch failed for project %s (%s): %s",
                project.project_id, project.sitemap_url, exc,
            )
            raise

        project.sitemap_last_fetched_at = now_iso()
        logger.info(
            "Fetched %d sitemap entries for project %s", len(entries), project.project_id
        )
        return entries

    def fetch_and_parse_sync(self, project: ProjectSettings) -> List[SitemapEntry]:
        """Synchronous wrapper for fetch_and_parse(); closes the session afterwards."""

        async def _fetch() -> List[SitemapEntry]:
            try:
                return await self.fetch_and_parse(project)
            finally:
                await self.close()

        return run_sync(_fetch())


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


def sync_pages_to_project(
    project: ProjectSettings,
    entries: List[SitemapEntry],
    registry: PageRegistry,
) -> SyncStats:
    """Create or refresh a page for every sitemap entry.

    Existing pages keep their title, type, keywords and link count; only the
    sitemap priority and timestamps are refreshed.
    """
    stats = SyncStats(total=len(entries))
    fetched_at = now_iso()

    for entry in entries:
        existing = registry.get(project.project_id, entry.url)
        if existing is not None:
            registry.touch(
                existing,
                priority=entry.priority,
                last_modified_at=entry.lastmod,
            )
            stats.updated += 1
        else:
            registry.upsert(Page(
                project_id=project.project_id,
                url=entry.url,
                title=extract_title_from_url(entry.url),
                page_type=classify_page_type(entry.url),
                keywords=extract_keywords_from_url(entry.url),
                priority=entry.priority,
                link_count=0,
                is_active=True,
                last_modified_at=entry.lastmod,
                last_fetched_at=fetched_at,
            ))
            stats.created += 1

    logger.info(
        "Synced sitemap for project %s: created=%d updated=%d total=%d",
        project.project_id, stats.created, stats.updated, stats.total,
    )
    return stats
