"""
Hash Embedding Service

Deterministic token-hashing embeddings for offline runs and tests.
Similar wording produces similar vectors; no network access is needed.
"""

import hashlib
import re
from typing import List

import numpy as np

from .base import BaseEmbeddingService

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class HashEmbeddingService(BaseEmbeddingService):
    """Bag-of-tokens embedder: each token increments a hashed bucket, then L2-normalizes."""

    provider_name = "hash"

    def __init__(self, dimension: int = 256, batch_size: int = 32, enable_cache: bool = True):
        super().__init__(batch_size=batch_size, enable_cache=enable_cache)
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        vector = np.zeros(self.dimension, dtype=np.float64)
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.sha256(token.encode('utf-8')).digest()
            vector[int.from_bytes(digest[:4], 'big') % self.dimension] += 1.0

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector.tolist()

    def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        return [self.embed_text(text) for text in texts]
