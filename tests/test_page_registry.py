"""
Tests for the page registry.

Covers manual adds, upserts, activation, removal, link counting, listing,
stats and JSON persistence.
"""

import json
import threading

import pytest

from seocore.page_classifier import PageType
from seocore.page_registry import (
    DuplicatePageError,
    Page,
    PageNotFoundError,
    PageRegistry,
    PageRegistryError,
    ProjectSettings,
)


# ===================================================================
# Data classes
# ===================================================================

class TestProjectSettings:

    @pytest.mark.unit
    def test_defaults(self):
        project = ProjectSettings(project_id="acme")
        assert project.sitemap_url is None
        assert project.prioritize_blog_links is False
        assert project.internal_links_per_article == 3

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [-1, 11])
    def test_links_per_article_range(self, value):
        with pytest.raises(ValueError):
            ProjectSettings(project_id="acme", internal_links_per_article=value)

    @pytest.mark.unit
    def test_from_dict_ignores_unknown_keys(self):
        project = ProjectSettings.from_dict({"project_id": "acme", "owner": "someone"})
        assert project.project_id == "acme"


class TestPage:

    @pytest.mark.unit
    def test_dict_round_trip(self, make_page):
        page = make_page(
            "https://acme.com/blog/a", page_type=PageType.BLOG, keywords=["blog"],
        )
        data = page.to_dict()
        assert data["page_type"] == "blog"
        assert Page.from_dict(data) == page


# ===================================================================
# Registry operations
# ===================================================================

class TestAddPage:

    @pytest.mark.unit
    def test_derives_fields_from_url(self, registry):
        page = registry.add_page("acme", "https://acme.com/blog/coffee-grinder-guide")
        assert page.title == "Coffee Grinder Guide"
        assert page.page_type == PageType.BLOG
        assert page.keywords == ["blog", "coffee", "grinder", "guide"]
        assert page.priority == 0.5
        assert page.link_count == 0
        assert page.is_active is True

    @pytest.mark.unit
    def test_explicit_fields_win(self, registry):
        page = registry.add_page(
            "acme", "https://acme.com/pricing",
            title="Pricing", page_type=PageType.LANDING, priority=0.9, keywords=["plans"],
        )
        assert (page.title, page.page_type, page.priority, page.keywords) == (
            "Pricing", PageType.LANDING, 0.9, ["plans"],
        )

    @pytest.mark.unit
    def test_duplicate_url_rejected(self, registry):
        registry.add_page("acme", "https://acme.com/about")
        with pytest.raises(DuplicatePageError) as exc_info:
            registry.add_page("acme", "https://acme.com/about")
        assert exc_info.value.url == "https://acme.com/about"
        assert isinstance(exc_info.value, PageRegistryError)

    @pytest.mark.unit
    def test_same_url_in_other_project_allowed(self, registry):
        registry.add_page("acme", "https://shared.com/a")
        registry.add_page("other", "https://shared.com/a")
        assert len(registry.pages_for("acme")) == 1
        assert len(registry.pages_for("other")) == 1

    @pytest.mark.unit
    def test_priority_range(self, registry):
        with pytest.raises(ValueError):
            registry.add_page("acme", "https://acme.com/a", priority=1.5)


class TestUpsertAndUpdates:

    @pytest.mark.unit
    def test_upsert_reports_created(self, registry, make_page):
        _, created = registry.upsert(make_page("https://acme.com/a"))
        assert created is True
        _, created = registry.upsert(make_page("https://acme.com/a", priority=0.9))
        assert created is False
        assert registry.get("acme", "https://acme.com/a").priority == 0.9

    @pytest.mark.unit
    def test_set_active_filters_pages(self, registry):
        registry.add_page("acme", "https://acme.com/a")
        registry.add_page("acme", "https://acme.com/b")
        registry.set_active("acme", "https://acme.com/a", False)
        active = registry.pages_for("acme", active_only=True)
        assert [p.url for p in active] == ["https://acme.com/b"]

    @pytest.mark.unit
    def test_remove(self, registry):
        registry.add_page("acme", "https://acme.com/a")
        registry.remove("acme", "https://acme.com/a")
        assert registry.get("acme", "https://acme.com/a") is None

    @pytest.mark.unit
    def test_remove_missing(self, registry):
        with pytest.raises(PageNotFoundError):
            registry.remove("acme", "https://acme.com/missing")

    @pytest.mark.unit
    def test_touch_stamps_fetch_time(self, registry):
        page = registry.add_page("acme", "https://acme.com/a")
        updated = registry.touch(page, priority=0.7)
        assert updated.priority == 0.7
        assert updated.last_fetched_at is not None


class TestIncrementLinkCount:

    @pytest.mark.unit
    def test_returns_new_count_and_updates_page(self, registry):
        page = registry.add_page("acme", "https://acme.com/a")
        assert registry.increment_link_count(page) == 1
        assert registry.increment_link_count(page) == 2
        assert page.link_count == 2

    @pytest.mark.unit
    def test_unknown_page(self, registry, make_page):
        with pytest.raises(PageNotFoundError):
            registry.increment_link_count(make_page("https://acme.com/ghost"))

    @pytest.mark.unit
    def test_concurrent_increments(self, registry):
        page = registry.add_page("acme", "https://acme.com/a")

        def _bump():
            for _ in range(100):
                registry.increment_link_count(page)

        threads = [threading.Thread(target=_bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert registry.get("acme", page.url).link_count == 800


class TestListingAndStats:

    @pytest.fixture
    def populated(self, registry, make_page):
        registry.upsert(make_page("https://acme.com/blog/a", page_type=PageType.BLOG,
                                  link_count=3, priority=0.5, title="Grinder Guide"))
        registry.upsert(make_page("https://acme.com/blog/b", page_type=PageType.BLOG,
                                  link_count=0, priority=0.4))
        registry.upsert(make_page("https://acme.com/shop/c", page_type=PageType.PRODUCT,
                                  link_count=0, priority=0.9))
        registry.upsert(make_page("https://acme.com/old", link_count=2, is_active=False))
        return registry

    @pytest.mark.unit
    def test_list_order(self, populated):
        urls = [p.url for p in populated.list_pages("acme")]
        assert urls == [
            "https://acme.com/shop/c",
            "https://acme.com/blog/b",
            "https://acme.com/old",
            "https://acme.com/blog/a",
        ]

    @pytest.mark.unit
    def test_list_filters(self, populated):
        blog = populated.list_pages("acme", page_type=PageType.BLOG)
        assert {p.url for p in blog} == {"https://acme.com/blog/a", "https://acme.com/blog/b"}
        inactive = populated.list_pages("acme", is_active=False)
        assert [p.url for p in inactive] == ["https://acme.com/old"]

    @pytest.mark.unit
    def test_search_url_and_title(self, populated):
        assert [p.url for p in populated.search("acme", "GRINDER")] == ["https://acme.com/blog/a"]
        assert [p.url for p in populated.search("acme", "/shop/")] == ["https://acme.com/shop/c"]

    @pytest.mark.unit
    def test_stats(self, populated):
        project = ProjectSettings(project_id="acme", sitemap_last_fetched_at="2026-01-01T00:00:00Z")
        stats = populated.stats(project)
        assert stats == {
            "total": 4,
            "active": 3,
            "by_type": {"blog": 2, "product": 1, "service": 0, "landing": 0, "other": 0},
            "total_links_distributed": 5,
            "last_fetched": "2026-01-01T00:00:00Z",
        }

    @pytest.mark.unit
    def test_empty_project(self, registry):
        assert registry.pages_for("nobody") == []
        assert registry.stats(ProjectSettings(project_id="nobody"))["total"] == 0


# ===================================================================
# Persistence
# ===================================================================

class TestPersistence:

    @pytest.mark.unit
    def test_pages_and_project_survive_reload(self, tmp_path):
        registry = PageRegistry(data_dir=tmp_path)
        project = ProjectSettings(project_id="acme", sitemap_url="https://acme.com/sitemap.xml",
                                  prioritize_blog_links=True)
        registry.save_project(project)
        page = registry.add_page("acme", "https://acme.com/blog/a")
        registry.increment_link_count(page)

        reloaded = PageRegistry(data_dir=tmp_path)
        assert reloaded.get_project("acme") == project
        stored = reloaded.get("acme", "https://acme.com/blog/a")
        assert stored.link_count == 1
        assert stored.page_type == PageType.BLOG

    @pytest.mark.unit
    def test_file_layout(self, file_registry, tmp_path):
        file_registry.add_page("acme", "https://acme.com/a")
        data = json.loads((tmp_path / "pages" / "acme.json").read_text(encoding="utf-8"))
        assert data["project"] is None
        assert data["pages"][0]["url"] == "https://acme.com/a"

    @pytest.mark.unit
    def test_unsafe_project_id_in_filename(self, tmp_path):
        registry = PageRegistry(data_dir=tmp_path)
        registry.add_page("../evil", "https://acme.com/a")
        assert (tmp_path / "..%2Fevil.json").exists()
        assert [p.name for p in tmp_path.iterdir()] == ["..%2Fevil.json"]

    @pytest.mark.unit
    def test_similar_project_ids_stay_isolated(self, tmp_path):
        registry = PageRegistry(data_dir=tmp_path)
        registry.add_page("acme shop", "https://acme.com/blog/a")
        registry.add_page("acme/shop", "https://acme.com/blog/b")

        reloaded = PageRegistry(data_dir=tmp_path)
        assert reloaded.pages_for("acme_shop") == []

        registry.add_page("acme_shop", "https://acme.com/blog/c")
        reloaded = PageRegistry(data_dir=tmp_path)
        for project_id, url in [
            ("acme shop", "https://acme.com/blog/a"),
            ("acme/shop", "https://acme.com/blog/b"),
            ("acme_shop", "https://acme.com/blog/c"),
        ]:
            pages = reloaded.pages_for(project_id)
            assert [(p.project_id, p.url) for p in pages] == [(project_id, url)]

    @pytest.mark.unit
    def test_foreign_pages_in_file_are_ignored(self, tmp_path):
        (tmp_path / "acme.json").write_text(json.dumps({
            "project": {"project_id": "other", "sitemap_url": "https://other.com/sitemap.xml"},
            "pages": [
                {"project_id": "other", "url": "https://other.com/x"},
                {"project_id": "acme", "url": "https://acme.com/y"},
            ],
        }), encoding="utf-8")

        registry = PageRegistry(data_dir=tmp_path)
        assert [p.url for p in registry.pages_for("acme")] == ["https://acme.com/y"]
        assert registry.get_project("acme").sitemap_url is None

    @pytest.mark.unit
    def test_get_project_defaults(self, registry):
        project = registry.get_project("fresh")
        assert project == ProjectSettings(project_id="fresh")
