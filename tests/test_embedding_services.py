"""
Test Suite for Embedding Provider Clients

All HTTP calls are mocked; no provider needs to be running.
"""

import pytest
import numpy as np
from unittest.mock import Mock, patch
import requests

from newsbot.config import Config
from newsbot.embeddings.base import BaseEmbeddingService, CacheStats, EmbeddingProviderError
from newsbot.embeddings.factory import create_embedding_service
from newsbot.embeddings.hash_service import HashEmbeddingService
from newsbot.embeddings.jina_service import JinaEmbeddingService
from newsbot.embeddings.ollama_service import OllamaEmbeddingService


# ============================================================================
# Fixtures
# ============================================================================

def json_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status = Mock()
    return response


class CountingService(BaseEmbeddingService):
    """Records every batch sent to the provider."""

    provider_name = "counting"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.batches = []

    def _embed_batch(self, texts):
        self.batches.append(list(texts))
        return [[float(len(text)), 1.0] for text in texts]


@pytest.fixture
def jina_service():
    return JinaEmbeddingService(api_key="test-key", batch_size=2)


@pytest.fixture
def ollama_service():
    return OllamaEmbeddingService(model="nomic-embed-text", timeout=5)


# ============================================================================
# Base Service Tests
# ============================================================================

class TestBatchingAndCache:
    """Test batching, ordering and caching shared by all providers."""

    def test_batches_respect_batch_size(self):
        service = CountingService(batch_size=2)

        vectors = service.generate_embeddings_batch(["a", "bb", "ccc", "dddd", "eeeee"])

        assert [len(batch) for batch in service.batches] == [2, 2, 1]
        assert [v[0] for v in vectors] == [1.0, 2.0, 3.0, 4.0, 5.0]

    def test_cached_texts_not_requested_again(self):
        service = CountingService(batch_size=10)

        service.generate_embeddings_batch(["alpha", "beta"])
        vectors = service.generate_embeddings_batch(["beta", "gamma", "alpha"])

        assert service.batches == [["alpha", "beta"], ["gamma"]]
        assert [v[0] for v in vectors] == [4.0, 5.0, 5.0]

        stats = service.get_cache_stats()
        assert stats['hits'] == 2
        assert stats['misses'] == 3
        assert stats['cache_size'] == 3
        assert stats['hit_rate'] == pytest.approx(0.4)

    def test_cache_disabled(self):
        service = CountingService(enable_cache=False)

        service.generate_embeddings_batch(["alpha"])
        service.generate_embeddings_batch(["alpha"])

        assert len(service.batches) == 2

    def test_clear_cache(self):
        service = CountingService()
        service.generate_embedding("alpha")

        service.clear_cache()

        assert service.get_cache_stats()['cache_size'] == 0
        service.generate_embedding("alpha")
        assert len(service.batches) == 2

    def test_empty_input(self):
        service = CountingService()
        assert service.generate_embeddings_batch([]) == []
        assert service.batches == []

    def test_progress_callback(self):
        service = CountingService(batch_size=2)
        calls = []

        service.generate_embeddings_batch(["a", "b", "c"], progress_callback=lambda c, t: calls.append((c, t)))

        assert calls == [(2, 3), (3, 3)]

    def test_wrong_vector_count_rejected(self):
        service = CountingService()
        service._embed_batch = Mock(return_value=[[1.0, 2.0]])

        with pytest.raises(EmbeddingProviderError, match="returned 1 embeddings for 2 inputs"):
            service.generate_embeddings_batch(["a", "b"])

    def test_cache_stats_hit_rate_empty(self):
        assert CacheStats().hit_rate == 0.0


# ============================================================================
# Jina Tests
# ============================================================================

class TestJinaEmbeddingService:
    """Test the Jina HTTP client."""

    @patch('newsbot.embeddings.jina_service.requests.post')
    def test_request_format(self, mock_post, jina_service):
        mock_post.return_value = json_response({'data': [{'index': 0, 'embedding': [0.1, 0.2]}]})

        vector = jina_service.generate_embedding("hello")

        np.testing.assert_allclose(vector, [0.1, 0.2], rtol=1e-6)
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.jina.ai/v1/embeddings"
        assert kwargs['json'] == {'model': "jina-embeddings-v2-base-en", 'input': ["hello"]}
        assert kwargs['headers']['Authorization'] == "Bearer test-key"
        assert kwargs['timeout'] == 30

    @patch('newsbot.embeddings.jina_service.requests.post')
    def test_results_reordered_by_index(self, mock_post, jina_service):
        mock_post.return_value = json_response({'data': [
            {'index': 1, 'embedding': [0.0, 1.0]},
            {'index': 0, 'embedding': [1.0, 0.0]},
        ]})

        vectors = jina_service.generate_embeddings_batch(["first", "second"])

        assert vectors[0].tolist() == [1.0, 0.0]
        assert vectors[1].tolist() == [0.0, 1.0]

    def test_missing_api_key(self):
        service = JinaEmbeddingService(api_key=None)

        with pytest.raises(EmbeddingProviderError, match="API key"):
            service.generate_embedding("hello")

    @patch('newsbot.embeddings.jina_service.requests.post')
    def test_timeout(self, mock_post, jina_service):
        mock_post.side_effect = requests.exceptions.Timeout()

        with pytest.raises(EmbeddingProviderError, match="timed out"):
            jina_service.generate_embedding("hello")

    @patch('newsbot.embeddings.jina_service.requests.post')
    def test_http_error(self, mock_post, jina_service):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("401 Unauthorized")
        mock_post.return_value = response

        with pytest.raises(EmbeddingProviderError, match="401"):
            jina_service.generate_embedding("hello")

    @patch('newsbot.embeddings.jina_service.requests.post')
    def test_malformed_response(self, mock_post, jina_service):
        mock_post.return_value = json_response({'error': 'nope'})

        with pytest.raises(EmbeddingProviderError, match="response format"):
            jina_service.generate_embedding("hello")

    @pytest.mark.parametrize("embedding", ["garbage", None, [], [[0.1, 0.2]], [0.1, "x"]])
    @patch('newsbot.embeddings.jina_service.requests.post')
    def test_malformed_vector_rejected(self, mock_post, embedding, jina_service):
        mock_post.return_value = json_response({'data': [{'index': 0, 'embedding': embedding}]})

        with pytest.raises(EmbeddingProviderError, match="malformed embedding at position 0"):
            jina_service.generate_embedding("hello")

        assert jina_service.get_cache_stats()['cache_size'] == 0

    @patch('newsbot.embeddings.jina_service.requests.post')
    def test_short_response_rejected(self, mock_post, jina_service):
        mock_post.return_value = json_response({'data': [{'index': 0, 'embedding': [1.0]}]})

        with pytest.raises(EmbeddingProviderError):
            jina_service.generate_embeddings_batch(["a", "b"])


# ============================================================================
# Ollama Tests
# ============================================================================

class TestOllamaEmbeddingService:
    """Test the Ollama HTTP client."""

    @patch('newsbot.embeddings.ollama_service.requests.post')
    def test_embed_batch(self, mock_post, ollama_service):
        mock_post.return_value = json_response({'embeddings': [[1.0, 0.0], [0.0, 1.0]]})

        vectors = ollama_service.generate_embeddings_batch(["a", "b"])

        assert len(vectors) == 2
        mock_post.assert_called_once_with(
            "http://localhost:11434/api/embed",
            json={'model': "nomic-embed-text", 'input': ["a", "b"]},
            timeout=5
        )

    @patch('newsbot.embeddings.ollama_service.requests.post')
    def test_connection_error(self, mock_post, ollama_service):
        mock_post.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(EmbeddingProviderError, match="Unable to connect"):
            ollama_service.generate_embedding("hello")

    @patch('newsbot.embeddings.ollama_service.requests.post')
    def test_server_error(self, mock_post, ollama_service):
        error_response = Mock(status_code=500)
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=error_response)
        mock_post.return_value = response

        with pytest.raises(EmbeddingProviderError, match="500"):
            ollama_service.generate_embedding("hello")

    @patch('newsbot.embeddings.ollama_service.requests.get')
    def test_verify_connection(self, mock_get, ollama_service):
        mock_get.return_value = json_response({'models': []})

        assert ollama_service.verify_connection() is True
        mock_get.assert_called_once_with("http://localhost:11434/api/tags", timeout=5)

    @patch('newsbot.embeddings.ollama_service.requests.get')
    def test_verify_connection_failure(self, mock_get, ollama_service):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(EmbeddingProviderError, match="ollama serve"):
            ollama_service.verify_connection()

    def test_verify_model_available(self, ollama_service):
        assert ollama_service.verify_model_available(["nomic-embed-text:latest"]) is True

        with pytest.raises(EmbeddingProviderError, match="ollama pull"):
            ollama_service.verify_model_available(["llama3.1:latest"])


# ============================================================================
# Hash Embedding Tests
# ============================================================================

class TestHashEmbeddingService:
    """Test the offline hashing embedder."""

    def test_deterministic_and_normalized(self):
        service = HashEmbeddingService(dimension=64)

        a = service.embed_text("Central bank holds rates")
        b = service.embed_text("Central bank holds rates")

        assert a == b
        assert len(a) == 64
        assert np.linalg.norm(a) == pytest.approx(1.0)

    def test_similar_texts_score_higher(self):
        service = HashEmbeddingService()
        query = np.array(service.embed_text("lunar mission"))
        related = np.array(service.embed_text("Space agency confirms lunar mission date"))
        unrelated = np.array(service.embed_text("Bank raises interest rates"))

        assert query @ related > query @ unrelated

    def test_text_without_tokens_is_zero_vector(self):
        service = HashEmbeddingService(dimension=8)
        assert service.embed_text("!!!") == [0.0] * 8


# ============================================================================
# Factory Tests
# ============================================================================

class TestEmbeddingFactory:
    """Test provider selection from configuration."""

    @pytest.fixture
    def config(self):
        with patch.dict('os.environ', {}, clear=True):
            yield Config()

    def test_default_is_jina(self, config):
        assert isinstance(create_embedding_service(config), JinaEmbeddingService)

    def test_ollama(self, config):
        config.update(embedding_provider='ollama')
        service = create_embedding_service(config)

        assert isinstance(service, OllamaEmbeddingService)
        assert service.model == config.ollama_embedding_model

    def test_hash(self, config):
        config.update(embedding_provider='hash', hash_embedding_dimension=32)
        service = create_embedding_service(config)

        assert isinstance(service, HashEmbeddingService)
        assert service.dimension == 32
