"""
News Ingestion Service

Pulls articles from multiple syndication feeds, normalizes them into
Document records, and keeps a JSON cache of the latest corpus on disk.

Failure handling:
- A failing feed is logged and skipped; the remaining feeds are still read
- If every feed fails, the built-in seed corpus is used instead
- A missing or corrupt cache file loads as an empty corpus
"""

import json
import logging
import math
import os
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from ..models import Document
from .feed_reader import FeedReader, SourceUnavailableError
from .seed_corpus import seed_documents

logger = logging.getLogger(__name__)

__all__ = ['NewsIngestionService', 'CorpusEmptyError', 'SourceUnavailableError']


class CorpusEmptyError(Exception):
    """Raised when no documents can be obtained from any source."""
    pass


class NewsIngestionService:
    """
    Corpus ingestion and cache management.

    Features:
    - Even per-source quota (ceiling division of the requested limit)
    - Partial-failure isolation between sources
    - Seed-corpus fallback for fully offline environments
    - Atomic cache writes
    """

    def __init__(
        self,
        feed_urls: List[str],
        cache_path: str = "data/news.json",
        feed_reader: Optional[FeedReader] = None,
        enable_seed_corpus: bool = True,
        show_progress: bool = False
    ):
        """
        Initialize the ingestion service.

        Args:
            feed_urls: RSS/Atom feed URLs to pull from
            cache_path: JSON file holding the persisted corpus
            feed_reader: FeedReader instance (or None for default)
            enable_seed_corpus: Substitute the seed corpus when every source fails
            show_progress: Show a progress bar while reading feeds
        """
        self.feed_urls = list(feed_urls)
        self.cache_path = Path(cache_path)
        self.feed_reader = feed_reader or FeedReader()
        self.enable_seed_corpus = enable_seed_corpus
        self.show_progress = show_progress

    def load_cached(self) -> List[Document]:
        """
        Load the persisted corpus.

        Returns:
            Cached documents, or an empty list if the cache is missing or corrupt
        """
        if not self.cache_path.exists():
            logger.info("No cached articles found, will fetch new ones")
            return []

        try:
            with open(self.cache_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load article cache {self.cache_path}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Article cache {self.cache_path} is not a JSON array, ignoring it")
            return []

        documents = [Document.from_dict(item) for item in data if isinstance(item, dict)]
        logger.info(f"Loaded {len(documents)} cached articles from {self.cache_path}")
        return documents

    def _save_cache(self, documents: List[Document]) -> None:
        """Overwrite the cache file with the given corpus (atomic rename)."""
        temp_path = self.cache_path.with_name(self.cache_path.name + '.tmp')
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump([doc.to_dict() for doc in documents], f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.cache_path)
            logger.info(f"Saved {len(documents)} articles to {self.cache_path}")
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            logger.error(f"Failed to save article cache: {e}")

    def _fetch_source(self, url: str, per_source: int) -> List[Document]:
        feed_title, items = self.feed_reader.read_feed(url)
        return [
            Document.create(
                title=item.get('title'),
                content=(
                    item.get('content_snippet')
                    or item.get('content')
                    or item.get('summary')
                ),
                url=item.get('link'),
                publish_date=item.get('pub_date'),
                source=feed_title,
            )
            for item in items[:per_source]
        ]

    def ingest(self, limit: int = 50) -> List[Document]:
        """
        Fetch articles from every configured feed.

        Args:
            limit: Total number of articles wanted across all sources

        Returns:
            Ingested documents (or the seed corpus if every source failed)

        Raises:
            CorpusEmptyError: If every source failed and the seed corpus is disabled
        """
        logger.info("Fetching news articles...")
        per_source = math.ceil(limit / len(self.feed_urls)) if self.feed_urls else 0

        documents: List[Document] = []
        failed = []

        sources = tqdm(self.feed_urls, desc="Reading feeds") if self.show_progress else self.feed_urls
        for url in sources:
            try:
                fetched = self._fetch_source(url, per_source)
                documents.extend(fetched)
                logger.info(f"Fetched {len(fetched)} articles from {url}")
            except SourceUnavailableError as e:
                failed.append(url)
                logger.warning(f"Skipping source {url}: {e}")
            except Exception as e:
                failed.append(url)
                logger.warning(f"Unexpected error reading {url}: {e}")

        if failed:
            logger.warning(f"{len(failed)}/{len(self.feed_urls)} sources failed: {failed}")

        if not documents:
            if not self.enable_seed_corpus:
                raise CorpusEmptyError("All news sources failed and the seed corpus is disabled")
            logger.warning("All news sources failed, falling back to the built-in seed corpus")
            documents = seed_documents()

        self._save_cache(documents)
        logger.info(f"Fetched {len(documents)} articles")
        return documents
