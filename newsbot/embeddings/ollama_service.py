"""
Ollama Embedding Service

Generates text embeddings with a locally served Ollama model.
Provides connection and model verification in addition to batch embedding.
"""

import logging
from typing import List, Optional

import requests

from .base import BaseEmbeddingService, EmbeddingProviderError

logger = logging.getLogger(__name__)


class OllamaEmbeddingService(BaseEmbeddingService):
    """
    Embedding client for Ollama's ``/api/embed`` endpoint.

    Features:
    - Batch requests (one HTTP call per batch)
    - Connection and model availability checks
    - Errors mapped to EmbeddingProviderError
    """

    provider_name = "ollama"

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        timeout: int = 30,
        batch_size: int = 32,
        enable_cache: bool = True
    ):
        """
        Initialize the Ollama embedding service.

        Args:
            model: Ollama model name (default: nomic-embed-text)
            base_url: Ollama base URL
            timeout: Request timeout in seconds
            batch_size: Number of texts per request
            enable_cache: Whether to cache vectors in memory
        """
        super().__init__(batch_size=batch_size, enable_cache=enable_cache)
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        logger.info(f"Initialized OllamaEmbeddingService with model: {self.model}")

    def verify_connection(self) -> bool:
        """
        Verify connection to Ollama service.

        Returns:
            True if connection successful

        Raises:
            EmbeddingProviderError: If unable to connect
        """
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
            response.raise_for_status()
            logger.info("✓ Successfully connected to Ollama service")
            return True

        except requests.exceptions.Timeout:
            raise EmbeddingProviderError(
                f"Connection to Ollama timed out after {self.timeout}s"
            )
        except requests.exceptions.RequestException as e:
            raise EmbeddingProviderError(
                f"Unable to connect to Ollama at {self.base_url}. "
                f"Please ensure Ollama is running (try: ollama serve). {e}"
            )

    def verify_model_available(self, models: Optional[List[str]] = None) -> bool:
        """
        Verify that the configured model is pulled.

        Raises:
            EmbeddingProviderError: If the model is not available or Ollama is unreachable
        """
        if models is None:
            try:
                response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
                response.raise_for_status()
                models = [m['name'] for m in response.json().get('models', [])]
            except requests.exceptions.RequestException as e:
                raise EmbeddingProviderError(f"Error checking model availability: {str(e)}")

        if self.model not in models and f"{self.model}:latest" not in models:
            raise EmbeddingProviderError(
                f"Model '{self.model}' not found. Available models: {models}. "
                f"Try: ollama pull {self.model}"
            )

        logger.info(f"✓ Model '{self.model}' is available")
        return True

    def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        try:
            response = requests.post(
                f"{self.base_url}/api/embed",
                json={
                    "model": self.model,
                    "input": texts
                },
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()['embeddings']

        except requests.exceptions.ConnectionError:
            raise EmbeddingProviderError(
                f"Unable to connect to Ollama at {self.base_url}. "
                "Please ensure Ollama is running."
            )
        except requests.exceptions.Timeout:
            raise EmbeddingProviderError(
                f"Request timed out after {self.timeout}s"
            )
        except requests.exceptions.HTTPError as e:
            # 500 usually means the input is too long or the model is overloaded
            if e.response is not None and e.response.status_code == 500:
                raise EmbeddingProviderError(
                    "Ollama server error (500). The text may be too long or the model may be overloaded."
                )
            raise EmbeddingProviderError(f"HTTP error from Ollama: {str(e)}")
        except requests.exceptions.RequestException as e:
            raise EmbeddingProviderError(f"Error generating embedding: {str(e)}")
        except (KeyError, ValueError) as e:
            raise EmbeddingProviderError(f"Unexpected API response format: {e}")
