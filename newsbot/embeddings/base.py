"""
Embedding Service Base

Common behaviour for every embedding provider client:
- Batch processing with progress logging
- In-memory caching keyed by text hash
- Response validation (one vector per input, order-preserving)
"""

import hashlib
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import List, Dict, Optional, Callable

import numpy as np

logger = logging.getLogger(__name__)


class EmbeddingProviderError(Exception):
    """Raised when the embedding provider cannot return usable vectors."""
    pass


@dataclass
class CacheStats:
    """Statistics for cache performance tracking."""
    hits: int = 0
    misses: int = 0
    total_requests: int = 0
    cache_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        return self.hits / self.total_requests if self.total_requests > 0 else 0.0

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            **asdict(self),
            'hit_rate': self.hit_rate
        }


class BaseEmbeddingService(ABC):
    """
    Base class for embedding provider clients.

    Subclasses implement ``_embed_batch`` for one provider request; this class
    handles caching, batching and validation around it.
    """

    provider_name = "base"

    def __init__(self, batch_size: int = 32, enable_cache: bool = True):
        """
        Args:
            batch_size: Number of texts sent per provider request
            enable_cache: Whether to cache vectors in memory
        """
        self.batch_size = batch_size
        self.enable_cache = enable_cache
        self._memory_cache: Dict[str, np.ndarray] = {}
        self._cache_stats = CacheStats()
        self._lock = threading.Lock()

    @abstractmethod
    def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Request embeddings for one batch from the provider."""

    def _compute_hash(self, text: str) -> str:
        return hashlib.sha256(text.encode('utf-8')).hexdigest()

    def _request(self, texts: List[str]) -> List[np.ndarray]:
        vectors = self._embed_batch(texts)
        if not isinstance(vectors, list) or len(vectors) != len(texts):
            received = len(vectors) if isinstance(vectors, list) else type(vectors).__name__
            raise EmbeddingProviderError(
                f"{self.provider_name} returned {received} embeddings for {len(texts)} inputs"
            )
        return [self._to_array(vector, position) for position, vector in enumerate(vectors)]

    def _to_array(self, vector, position: int) -> np.ndarray:
        """Convert one provider vector, rejecting anything but a flat list of numbers."""
        try:
            array = np.asarray(vector, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise EmbeddingProviderError(
                f"{self.provider_name} returned a malformed embedding at position {position}: {e}"
            )
        if array.ndim != 1 or array.size == 0:
            raise EmbeddingProviderError(
                f"{self.provider_name} returned a malformed embedding at position {position}: "
                f"expected a non-empty vector, got shape {array.shape}"
            )
        return array

    def generate_embeddings_batch(
        self,
        texts: List[str],
        use_cache: bool = True,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> List[np.ndarray]:
        """
        Generate embeddings for multiple texts, order-preserving.

        Args:
            texts: List of input texts
            use_cache: Whether to use caching
            progress_callback: Optional callback function(current, total)

        Returns:
            List of embedding vectors, one per input text

        Raises:
            EmbeddingProviderError: If the provider fails or returns malformed data
        """
        if not texts:
            return []

        use_cache = use_cache and self.enable_cache
        results: List[Optional[np.ndarray]] = [None] * len(texts)
        pending: List[int] = []

        with self._lock:
            for i, text in enumerate(texts):
                self._cache_stats.total_requests += 1
                cached = self._memory_cache.get(self._compute_hash(text)) if use_cache else None
                if cached is not None:
                    self._cache_stats.hits += 1
                    results[i] = cached
                else:
                    self._cache_stats.misses += 1
                    pending.append(i)

        total = len(pending)
        if total:
            logger.info(
                f"Embedding {total} texts with {self.provider_name} "
                f"in batches of {self.batch_size}"
            )
        start_time = time.time()

        for start in range(0, total, self.batch_size):
            indices = pending[start:start + self.batch_size]
            vectors = self._request([texts[i] for i in indices])

            with self._lock:
                for i, vector in zip(indices, vectors):
                    results[i] = vector
                    if use_cache:
                        self._memory_cache[self._compute_hash(texts[i])] = vector
                self._cache_stats.cache_size = len(self._memory_cache)

            current = min(start + self.batch_size, total)
            logger.debug(f"Progress: {current}/{total} ({current / total * 100:.1f}%)")
            if progress_callback:
                progress_callback(current, total)

        if total:
            elapsed = time.time() - start_time
            rate = total / elapsed if elapsed > 0 else 0
            logger.info(f"Completed {total} embeddings in {elapsed:.2f}s ({rate:.2f} embeddings/s)")

        return results

    def generate_embedding(self, text: str, use_cache: bool = True) -> np.ndarray:
        """Generate embedding for a single text."""
        return self.generate_embeddings_batch([text], use_cache=use_cache)[0]

    def get_cache_stats(self) -> Dict:
        """Get cache performance statistics."""
        return self._cache_stats.to_dict()

    def clear_cache(self) -> None:
        """Clear the embedding cache."""
        self._memory_cache.clear()
        self._cache_stats = CacheStats()
        logger.info("Cleared embedding cache")
