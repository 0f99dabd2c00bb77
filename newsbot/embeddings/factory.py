"""Build the configured embedding provider client."""

from ..config import Config
from .base import BaseEmbeddingService
from .hash_service import HashEmbeddingService
from .jina_service import JinaEmbeddingService
from .ollama_service import OllamaEmbeddingService


def create_embedding_service(config: Config) -> BaseEmbeddingService:
    """Return the embedding client selected by ``config.embedding_provider``."""
    if config.embedding_provider == 'jina':
        return JinaEmbeddingService(
            api_key=config.jina_api_key,
            model=config.jina_model,
            base_url=config.jina_base_url,
            timeout=config.embedding_timeout,
            batch_size=config.embedding_batch_size
        )
    if config.embedding_provider == 'ollama':
        return OllamaEmbeddingService(
            model=config.ollama_embedding_model,
            base_url=config.ollama_base_url,
            timeout=config.embedding_timeout,
            batch_size=config.embedding_batch_size
        )
    return HashEmbeddingService(
        dimension=config.hash_embedding_dimension,
        batch_size=config.embedding_batch_size
    )
