"""Central configuration for the SEO content core.

Values come from module constants, a few of which can be overridden through
environment variables so the same code runs in workers, the CLI and tests.
"""

from __future__ import annotations

import os
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("SEOCORE_DATA_DIR", str(ROOT_DIR / "data")))
ARTICLE_DATA_DIR = DATA_DIR / "articles"
PAGE_DATA_DIR = DATA_DIR / "pages"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("SEOCORE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------
DEFAULT_TARGET_WORD_COUNT = 1500
MAX_SCORE_HISTORY = 2000  # score records kept by the article store
MAX_MEMORY_ARTICLES = 500  # article records held by a store without a data_dir

# ---------------------------------------------------------------------------
# Pages & internal linking
# ---------------------------------------------------------------------------
DEFAULT_PAGE_PRIORITY = 0.5
DEFAULT_LINKS_PER_ARTICLE = 3
MAX_LINKS_PER_ARTICLE = 10

# ---------------------------------------------------------------------------
# Sitemap fetching
# ---------------------------------------------------------------------------
SITEMAP_TIMEOUT = _env_int("SEOCORE_SITEMAP_TIMEOUT", 30)
SITEMAP_MAX_RETRIES = _env_int("SEOCORE_SITEMAP_RETRIES", 2)
SITEMAP_RETRY_BASE_DELAY = 1.0
SITEMAP_RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
SITEMAP_MAX_DEPTH = _env_int("SEOCORE_SITEMAP_MAX_DEPTH", 3)
USER_AGENT = os.getenv("SEOCORE_USER_AGENT", "SeoCore-SitemapBot/1.0")
