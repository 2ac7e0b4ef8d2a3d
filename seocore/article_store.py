"""
Article store for saved SEO scores.

Keeps the latest version of every scored article plus a bounded score
history. With a ``data_dir`` the records are written as JSON (atomic temp
file + replace). Without one everything lives in memory, which is what the
scorer uses by default; that mode keeps only the ``MAX_MEMORY_ARTICLES``
most recently updated articles.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from seocore.config import MAX_MEMORY_ARTICLES, MAX_SCORE_HISTORY
from seocore.seo_scorer import Article
from seocore.utils import get_logger, load_json, now_iso, save_json

logger = get_logger("article_store")

ARTICLES_FILE = "articles.json"
HISTORY_FILE = "score_history.json"


class ArticleStore:
    """Storage collaborator for :meth:`SeoScorer.calculate_and_save`."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self._data_dir = Path(data_dir) if data_dir else None
        self._lock = threading.Lock()
        self._articles: Dict[str, Dict[str, Any]] = {}
        self._history: List[Dict[str, Any]] = []

        if self._data_dir is not None:
            self._articles = load_json(self._data_dir / ARTICLES_FILE, {}) or {}
            self._history = load_json(self._data_dir / HISTORY_FILE, []) or []
            logger.debug(
                "Loaded %d articles from %s", len(self._articles), self._data_dir
            )

    def update_article(self, article: Article, **fields: Any) -> Article:
        """Apply ``fields`` to ``article`` and persist the result."""
        for name, value in fields.items():
            if name not in Article.__dataclass_fields__:
                raise AttributeError(f"Article has no field {name!r}")
            setattr(article, name, value)

        with self._lock:
            # reinsert so dict order tracks recency of update
            self._articles.pop(article.article_id, None)
            self._articles[article.article_id] = article.to_dict()
            if self._data_dir is None:
                while len(self._articles) > MAX_MEMORY_ARTICLES:
                    del self._articles[next(iter(self._articles))]
            if "seo_score" in fields:
                self._history.append({
                    "article_id": article.article_id,
                    "title": article.title,
                    "seo_score": article.seo_score,
                    "scored_at": now_iso(),
                })
                if len(self._history) > MAX_SCORE_HISTORY:
                    self._history = self._history[-MAX_SCORE_HISTORY:]
            self._persist()

        return article

    def get(self, article_id: str) -> Optional[Article]:
        with self._lock:
            record = self._articles.get(article_id)
        return Article.from_dict(record) if record else None

    def history(self, article_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent score records first, optionally for one article."""
        with self._lock:
            records = [
                h for h in self._history
                if article_id is None or h["article_id"] == article_id
            ]
        return list(reversed(records))[:limit]

    def __len__(self) -> int:
        return len(self._articles)

    def _persist(self) -> None:
        if self._data_dir is None:
            return
        save_json(self._data_dir / ARTICLES_FILE, self._articles)
        save_json(self._data_dir / HISTORY_FILE, self._history)
