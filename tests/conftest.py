"""
Shared fixtures for the seocore test suite.

Provides sample articles, page registries and aiohttp mocks so that all
tests run WITHOUT network access.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from seocore.page_classifier import PageType
from seocore.page_registry import Page, PageRegistry, ProjectSettings
from seocore.seo_scorer import Article, Keyword


# ---------------------------------------------------------------------------
# Article fixtures
# ---------------------------------------------------------------------------

WELL_OPTIMIZED_MARKDOWN = """Coffee brewing at home is easier than most people think. This guide
covers every coffee brewing method worth knowing, from pour over to
French press.

## Why Coffee Brewing Matters

Good beans deserve good technique. Grind size, water temperature and
contact time decide how your cup tastes.

### Grind Size

Use a burr grinder for an even grind.

### Water Temperature

Aim for 92 to 96 degrees Celsius.

## Popular Coffee Brewing Methods

- Pour over
- French press
- AeroPress
- Espresso

| Method | Time | Strength |
|--------|------|----------|
| Pour over | 3 min | Medium |
| French press | 4 min | Strong |

[IMAGE: barista pouring water over a coffee filter]

See our [grinder guide](https://example.com/blog/grinders) for more.

## Frequently Asked Questions

### How much coffee per cup?

About 15 grams for 250 ml of water.

### Does brewing time matter?

Yes. Longer contact extracts more flavour.
"""


@pytest.fixture
def coffee_keyword():
    return Keyword(phrase="coffee brewing", target_word_count=150)


@pytest.fixture
def well_optimized_article(coffee_keyword):
    """Article that hits nearly every check."""
    return Article(
        title="Coffee Brewing Methods: The Complete Guide for Beginners",
        meta_description=(
            "Learn every coffee brewing method from pour over to French press. "
            "Compare grind sizes, water temperatures and brew times to make "
            "better coffee."
        ),
        content_markdown=WELL_OPTIMIZED_MARKDOWN,
        keyword=coffee_keyword,
    )


# ---------------------------------------------------------------------------
# Page fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project():
    return ProjectSettings(project_id="acme", sitemap_url="https://acme.com/sitemap.xml")


@pytest.fixture
def registry():
    """In-memory page registry."""
    return PageRegistry()


@pytest.fixture
def file_registry(tmp_path):
    """Page registry persisted under a temp directory."""
    return PageRegistry(data_dir=tmp_path / "pages")


@pytest.fixture
def make_page():
    """Page factory with sensible defaults."""

    def _make(url, **overrides):
        defaults = {
            "project_id": "acme",
            "url": url,
            "title": "",
            "page_type": PageType.OTHER,
            "keywords": [],
            "priority": 0.5,
            "link_count": 0,
            "is_active": True,
        }
        defaults.update(overrides)
        return Page(**defaults)

    return _make


# ---------------------------------------------------------------------------
# aiohttp mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_aiohttp_response():
    """Create a mock aiohttp response factory."""

    def _make(status=200, text="", headers=None):
        resp = AsyncMock()
        resp.status = status
        resp.text = AsyncMock(return_value=text)
        resp.headers = headers or {"Content-Type": "application/xml"}
        resp.__aenter__ = AsyncMock(return_value=resp)
        resp.__aexit__ = AsyncMock(return_value=False)
        return resp

    return _make


@pytest.fixture
def make_mock_session():
    """Mock ClientSession whose ``get(url)`` serves responses by URL.

    ``responses`` maps URL -> response mock, or URL -> list of response
    mocks served in order (for retry tests).
    """

    def _make(responses):
        queues = {
            url: list(r) if isinstance(r, list) else [r]
            for url, r in responses.items()
        }

        def _get(url, **kwargs):
            queue = queues[url]
            return queue.pop(0) if len(queue) > 1 else queue[0]

        session = AsyncMock()
        session.get = MagicMock(side_effect=_get)
        session.close = AsyncMock()
        session.closed = False
        return session

    return _make
