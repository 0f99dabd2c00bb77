"""
Main Pipeline System

Wires all components into one system for news question answering.

This is the central integration point that coordinates:
- Corpus ingestion and caching
- Embedding and generation providers
- Vector index and RAG orchestration
- Sessions and the chat channel
"""

import logging
from typing import Any, Dict, Optional

import psutil

from .channel.session_channel import SessionChannel
from .config import Config, get_config
from .embeddings.base import BaseEmbeddingService
from .embeddings.factory import create_embedding_service
from .generation.base import BaseGenerator
from .generation.factory import create_generator
from .ingestion.feed_reader import FeedReader
from .ingestion.news_service import NewsIngestionService
from .query.handler import QueryHandler
from .query.rag_service import RAGService
from .sessions.session_store import SessionStore
from .storage.vector_store import VectorStore


class NewsChatSystem:
    """
    Main system that integrates all components.

    Provides high-level methods for:
    - Corpus refresh and RAG initialization
    - Single questions and session-scoped chat
    - System statistics
    - Shutdown
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        news_service: Optional[NewsIngestionService] = None,
        embedding_service: Optional[BaseEmbeddingService] = None,
        generator: Optional[BaseGenerator] = None,
        vector_store: Optional[VectorStore] = None,
        session_store: Optional[SessionStore] = None,
        show_progress: bool = False
    ):
        """
        Initialize the news chat system.

        Args:
            config: Configuration (or None for the global config)
            news_service: NewsIngestionService instance (or None for default)
            embedding_service: Embedding client (or None for the configured provider)
            generator: Generation client (or None for the configured provider)
            vector_store: VectorStore instance (or None for default)
            session_store: SessionStore instance (or None for default)
            show_progress: Show progress bars during ingestion
        """
        self.config = config or get_config()
        self._setup_logging(self.config.log_level)

        # Initialize components (dependency injection or defaults)
        self.news_service = news_service or NewsIngestionService(
            feed_urls=self.config.feed_urls,
            cache_path=self.config.corpus_cache_path,
            feed_reader=FeedReader(timeout=self.config.feed_timeout),
            enable_seed_corpus=self.config.enable_seed_corpus,
            show_progress=show_progress
        )
        self.embedding_service = embedding_service or create_embedding_service(self.config)
        self.generator = generator or create_generator(self.config)
        self.vector_store = vector_store or VectorStore()
        self.session_store = session_store or SessionStore(ttl_seconds=self.config.session_ttl_seconds)

        self.rag_service = RAGService(
            news_service=self.news_service,
            embedding_service=self.embedding_service,
            generator=self.generator,
            vector_store=self.vector_store,
            top_k=self.config.top_k_default,
            ingest_limit=self.config.ingest_limit,
            max_embedding_chars=self.config.max_embedding_chars,
            context_excerpt_chars=self.config.context_excerpt_chars
        )
        self.query_handler = QueryHandler(self.rag_service, self.session_store)
        self.channel = SessionChannel(
            self.query_handler,
            self.session_store,
            max_workers=self.config.max_workers
        )

        self.logger.info("NewsChatSystem initialized successfully")

    def _setup_logging(self, log_level: str):
        """Configure logging for the system."""
        self.logger = logging.getLogger(__name__)
        self.logger.setLevel(log_level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def initialize(self) -> None:
        """Load or ingest the corpus and build the index. Failures propagate."""
        self.rag_service.initialize()

    def refresh_corpus(self, limit: Optional[int] = None) -> int:
        """
        Re-ingest all feeds and overwrite the corpus cache.

        The running index is not touched; the new corpus is used on next startup.

        Returns:
            Number of documents written to the cache
        """
        documents = self.news_service.ingest(limit or self.config.ingest_limit)
        return len(documents)

    def ask(self, question: str) -> str:
        """Answer one question outside of any session."""
        return self.rag_service.process_query(question)

    def get_resource_usage(self) -> Dict[str, float]:
        """
        Get current resource usage (CPU and memory).

        Returns:
            Dictionary with resource usage metrics
        """
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': process.memory_info().rss / 1024 / 1024,
            'memory_percent': process.memory_percent()
        }

    def get_stats(self) -> Dict[str, Any]:
        """
        Get comprehensive system statistics.

        Returns:
            Dictionary with statistics
        """
        rag_stats = self.rag_service.get_stats()
        return {
            'ready': rag_stats['ready'],
            'total_articles': self.vector_store.count(),
            'vector_store_stats': rag_stats['vector_store_stats'],
            'active_sessions': self.session_store.active_count(),
            'embedding_provider': self.config.embedding_provider,
            'generation_provider': self.config.generation_provider,
            'cache_stats': self.embedding_service.get_cache_stats(),
            'resource_usage': self.get_resource_usage()
        }

    def shutdown(self) -> None:
        """Stop the channel workers and cancel session timers."""
        self.channel.shutdown()
        self.session_store.close()
        self.logger.info("NewsChatSystem shut down")
