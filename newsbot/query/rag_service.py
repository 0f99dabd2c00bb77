"""
RAG Service for News Question Answering

Orchestrates the complete RAG pipeline:
1. One-time initialization: load or ingest the corpus, embed it, build the index
2. Query embedding generation
3. Context retrieval from the vector store
4. Prompt construction with retrieved articles
5. LLM-based answer generation with graceful degradation
"""

import logging
import threading
import time
from typing import List, Dict, Any

from ..embeddings.base import BaseEmbeddingService, EmbeddingProviderError
from ..generation.base import APOLOGY_MESSAGE, BaseGenerator, GenerationError
from ..ingestion.news_service import CorpusEmptyError, NewsIngestionService
from ..models import RetrievalResult
from ..storage.vector_store import VectorStore

logger = logging.getLogger(__name__)


class RAGService:
    """
    Retrieval-augmented answering over a news corpus.

    The service moves one way from uninitialized to ready. ``initialize``
    is idempotent; concurrent callers wait on the same lock while the first
    one builds the index. Once ready, the index is only read.
    """

    def __init__(
        self,
        news_service: NewsIngestionService,
        embedding_service: BaseEmbeddingService,
        generator: BaseGenerator,
        vector_store: VectorStore = None,
        top_k: int = 3,
        ingest_limit: int = 50,
        max_embedding_chars: int = 1000,
        context_excerpt_chars: int = 300
    ):
        """
        Initialize the RAG service.

        Args:
            news_service: Corpus ingestion and cache
            embedding_service: Embedding provider client
            generator: Generation provider client
            vector_store: Vector store for semantic search (or None for a fresh one)
            top_k: Number of articles retrieved per question
            ingest_limit: Number of articles requested when ingesting
            max_embedding_chars: Truncation length of each article's embedding text
            context_excerpt_chars: Truncation length of each article's content in the prompt
        """
        self.news_service = news_service
        self.embedding_service = embedding_service
        self.generator = generator
        self.vector_store = vector_store or VectorStore()
        self.top_k = top_k
        self.ingest_limit = ingest_limit
        self.max_embedding_chars = max_embedding_chars
        self.context_excerpt_chars = context_excerpt_chars

        self._ready = False
        self._init_lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    def initialize(self) -> None:
        """
        Load or ingest the corpus and build the vector index.

        Raises:
            CorpusEmptyError: If no articles could be obtained
            EmbeddingProviderError: If the corpus cannot be embedded
            VectorDimensionError: If the provider returns inconsistent dimensions
        """
        if self._ready:
            return

        with self._init_lock:
            if self._ready:
                return

            logger.info("Initializing RAG service...")
            start_time = time.time()

            documents = self.news_service.load_cached()
            if not documents:
                documents = self.news_service.ingest(self.ingest_limit)

            if not documents:
                raise CorpusEmptyError("No articles found to initialize RAG service")

            logger.info("Creating embeddings...")
            texts = [doc.embedding_text(self.max_embedding_chars) for doc in documents]
            vectors = self.embedding_service.generate_embeddings_batch(texts)

            # Rebuilt wholesale; never merged with a previous corpus
            self.vector_store.clear()
            self.vector_store.add_documents(documents, vectors)

            self._ready = True
            logger.info(
                f"RAG service initialized with {len(documents)} articles "
                f"in {time.time() - start_time:.2f}s"
            )

    def _retrieve_context(self, question: str) -> List[RetrievalResult]:
        # Only corpus vectors are cached; one-off questions would grow the cache without bound
        query_embedding = self.embedding_service.generate_embedding(question, use_cache=False)
        return self.vector_store.top_k(query_embedding, k=self.top_k)

    def format_context(self, results: List[RetrievalResult]) -> str:
        """
        Format retrieved articles for inclusion in the prompt.

        Args:
            results: Retrieved articles, best first

        Returns:
            One block per article, separated by blank lines
        """
        blocks = []
        for result in results:
            doc = result.document
            blocks.append(
                f"Article: {doc.title}\n"
                f"Source: {doc.source}\n"
                f"Content: {doc.content[:self.context_excerpt_chars]}...\n"
                f"URL: {doc.url}"
            )
        return "\n\n".join(blocks)

    def process_query(self, query: str) -> str:
        """
        Answer a question from the news corpus.

        Initializes lazily on the first call. Provider failures during the
        query become a fixed apology; initialization failures propagate.

        Args:
            query: User's question

        Returns:
            Generated answer text, or APOLOGY_MESSAGE

        Raises:
            ValueError: If query is empty
        """
        if not query or not query.strip():
            raise ValueError("Question cannot be empty")

        self.initialize()

        try:
            results = self._retrieve_context(query)
        except EmbeddingProviderError as e:
            logger.error(f"Query embedding failed: {e}")
            return APOLOGY_MESSAGE

        context = self.format_context(results)

        try:
            return self.generator.generate(query, context)
        except GenerationError as e:
            logger.error(f"{type(e).__name__} from {self.generator.provider_name}: {e}")
            return APOLOGY_MESSAGE

    def get_stats(self) -> Dict[str, Any]:
        """Readiness and index statistics."""
        return {
            'ready': self._ready,
            'top_k': self.top_k,
            'vector_store_stats': self.vector_store.get_stats()
        }
