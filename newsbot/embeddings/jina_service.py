"""
Jina Embedding Service

Generates text embeddings through the Jina AI embeddings HTTP API.
"""

import logging
from typing import List, Optional

import requests

from .base import BaseEmbeddingService, EmbeddingProviderError

logger = logging.getLogger(__name__)


class JinaEmbeddingService(BaseEmbeddingService):
    """Embedding client for the Jina AI ``/v1/embeddings`` endpoint."""

    provider_name = "jina"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "jina-embeddings-v2-base-en",
        base_url: str = "https://api.jina.ai/v1/embeddings",
        timeout: int = 30,
        batch_size: int = 32,
        enable_cache: bool = True
    ):
        """
        Initialize the Jina embedding service.

        Args:
            api_key: Jina API key (required for every request)
            model: Jina embedding model name
            base_url: Embeddings endpoint URL
            timeout: Request timeout in seconds
            batch_size: Number of texts per request
            enable_cache: Whether to cache vectors in memory
        """
        super().__init__(batch_size=batch_size, enable_cache=enable_cache)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

        logger.info(f"Initialized JinaEmbeddingService with model: {self.model}")

    def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not self.api_key:
            raise EmbeddingProviderError("Jina API key not found")

        try:
            response = requests.post(
                self.base_url,
                json={
                    "model": self.model,
                    "input": texts
                },
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                timeout=self.timeout
            )
            response.raise_for_status()
            items = response.json()['data']

            # Entries carry their input position; fall back to response order
            if all(isinstance(item, dict) and 'index' in item for item in items):
                items = sorted(items, key=lambda item: item['index'])

            return [item['embedding'] for item in items]

        except requests.exceptions.Timeout:
            raise EmbeddingProviderError(
                f"Jina embedding request timed out after {self.timeout}s"
            )
        except requests.exceptions.HTTPError as e:
            raise EmbeddingProviderError(f"HTTP error from Jina: {str(e)}")
        except requests.exceptions.RequestException as e:
            raise EmbeddingProviderError(
                f"Unable to reach Jina at {self.base_url}: {str(e)}"
            )
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingProviderError(f"Unexpected Jina response format: {e}")
