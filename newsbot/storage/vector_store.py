"""
In-Memory Vector Store with Exact Cosine Search

Brute-force nearest neighbor search over article embeddings. Every query is
scored against every stored vector, which keeps ranking exact and ordering
deterministic for corpora in the low thousands.
"""

import logging
from typing import List, Dict, Optional, Sequence
import numpy as np

from ..models import Document, RetrievalResult

logger = logging.getLogger(__name__)


class VectorDimensionError(ValueError):
    """Raised when a vector's dimension does not match the index dimension."""
    pass


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors.

    A zero vector on either side yields 0.0 rather than NaN.

    Raises:
        VectorDimensionError: If the vectors differ in length
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise VectorDimensionError(
            f"Cannot compare vectors of dimension {va.shape[-1]} and {vb.shape[-1]}"
        )
    denominator = np.linalg.norm(va) * np.linalg.norm(vb)
    if denominator == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denominator)


class VectorStore:
    """
    Append-only store of (vector, Document) pairs.

    Features:
    - Dimension fixed by the first batch added
    - Exact cosine similarity ranking
    - Stable ordering: equal scores keep insertion order
    - Positional vector/document synchronization guarantee

    The store is read-only once populated, so concurrent searches need no locking.
    """

    def __init__(self):
        self.dimension: Optional[int] = None
        self.documents: List[Document] = []
        self._vectors: Optional[np.ndarray] = None
        self._norms: Optional[np.ndarray] = None

    def _validate_matrix(self, vectors: Sequence[Sequence[float]]) -> np.ndarray:
        try:
            matrix = np.asarray(vectors, dtype=np.float64)
        except ValueError:
            # Ragged input: rows of differing lengths
            lengths = sorted({len(v) for v in vectors})
            raise VectorDimensionError(
                f"Embedding batch contains mixed dimensions: {lengths}"
            )

        if matrix.ndim != 2 or matrix.shape[1] == 0:
            raise VectorDimensionError(
                f"Embeddings must form a 2-D batch of non-empty vectors, got shape {matrix.shape}"
            )

        expected = self.dimension if self.dimension is not None else matrix.shape[1]
        if matrix.shape[1] != expected:
            raise VectorDimensionError(
                f"Embedding dimension ({matrix.shape[1]}) must match "
                f"index dimension ({expected})"
            )
        return matrix

    def add_documents(
        self,
        documents: Sequence[Document],
        vectors: Sequence[Sequence[float]]
    ) -> None:
        """
        Add documents with their embedding vectors.

        Args:
            documents: Documents to index
            vectors: One embedding per document, in the same order

        Raises:
            ValueError: If documents and vectors counts don't match
            VectorDimensionError: If any vector's dimension differs from the index dimension
        """
        if len(documents) != len(vectors):
            raise ValueError(
                f"Documents count ({len(documents)}) must match "
                f"vectors count ({len(vectors)})"
            )

        if not documents:
            return

        matrix = self._validate_matrix(vectors)
        norms = np.linalg.norm(matrix, axis=1)

        if self._vectors is None:
            self.dimension = matrix.shape[1]
            self._vectors = matrix
            self._norms = norms
        else:
            self._vectors = np.vstack([self._vectors, matrix])
            self._norms = np.concatenate([self._norms, norms])

        self.documents.extend(documents)

        assert len(self._vectors) == len(self.documents), \
            "CRITICAL: Documents out of sync with vectors"

        logger.info(f"Added {len(documents)} documents to vector store")

    def _scores(self, query_vector: Sequence[float]) -> np.ndarray:
        query = np.asarray(query_vector, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != self.dimension:
            raise VectorDimensionError(
                f"Query dimension ({query.shape[-1] if query.ndim else 0}) must match "
                f"index dimension ({self.dimension})"
            )

        denominators = self._norms * np.linalg.norm(query)
        dots = self._vectors @ query
        # Zero vectors on either side score 0.0
        return np.divide(
            dots,
            denominators,
            out=np.zeros_like(dots),
            where=denominators != 0.0
        )

    def top_k(self, query_vector: Sequence[float], k: int = 3) -> List[RetrievalResult]:
        """
        Return the k most similar documents.

        Args:
            query_vector: Query embedding vector
            k: Number of results to return

        Returns:
            min(k, count()) results sorted by descending score; ties keep insertion order

        Raises:
            ValueError: If k is negative
            VectorDimensionError: If the query dimension doesn't match the index
        """
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")

        if k == 0 or self.count() == 0:
            return []

        scores = self._scores(query_vector)
        # Stable sort on negated scores keeps insertion order among ties
        order = np.argsort(-scores, kind='stable')[:k]

        return [
            RetrievalResult(document=self.documents[idx], score=float(scores[idx]))
            for idx in order
        ]

    def clear(self) -> None:
        """Clear all vectors and documents, resetting to empty state."""
        self.dimension = None
        self.documents = []
        self._vectors = None
        self._norms = None

    def count(self) -> int:
        """Number of indexed documents."""
        return len(self.documents)

    def get_dimension(self) -> Optional[int]:
        """Vector dimension, or None before the first insert."""
        return self.dimension

    def get_stats(self) -> Dict:
        """
        Get statistics about the vector store.

        Returns:
            Dictionary with statistics
        """
        return {
            'total_vectors': self.count(),
            'dimension': self.dimension,
            'index_type': 'BruteForceCosine'
        }

    def __repr__(self) -> str:
        return f"VectorStore(vectors={self.count()}, dimension={self.dimension})"
