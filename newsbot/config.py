"""
Centralized Configuration Module

Provides a single source of truth for all system configuration parameters.
Loads settings from environment variables with sensible defaults and validation.
"""

import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional
from urllib.parse import urlparse
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_FEED_URLS = [
    'https://feeds.bbci.co.uk/news/rss.xml',
    'https://rss.cnn.com/rss/edition.rss',
    'https://feeds.reuters.com/reuters/topNews',
]

EMBEDDING_PROVIDERS = ('jina', 'ollama', 'hash')
GENERATION_PROVIDERS = ('gemini', 'ollama')

_SECRET_FIELDS = ('jina_api_key', 'gemini_api_key')


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class Config:
    """
    Centralized configuration for the News Chat Assistant.

    All configuration parameters are loaded from environment variables
    with sensible defaults. Validation is performed on initialization.
    """

    # Embedding Provider
    embedding_provider: str = field(default="jina")
    jina_api_key: Optional[str] = field(default=None)
    jina_model: str = field(default="jina-embeddings-v2-base-en")
    jina_base_url: str = field(default="https://api.jina.ai/v1/embeddings")
    embedding_timeout: int = field(default=30)
    embedding_batch_size: int = field(default=32)
    hash_embedding_dimension: int = field(default=256)

    # Ollama Settings
    ollama_base_url: str = field(default="http://localhost:11434")
    ollama_embedding_model: str = field(default="nomic-embed-text")
    ollama_llm_model: str = field(default="llama3.1:latest")

    # Generation Provider
    generation_provider: str = field(default="gemini")
    gemini_api_key: Optional[str] = field(default=None)
    gemini_model: str = field(default="gemini-1.5-flash")
    generation_timeout: int = field(default=30)
    temperature: float = field(default=0.7)

    # Retrieval Settings
    top_k_default: int = field(default=3)
    max_embedding_chars: int = field(default=1000)
    context_excerpt_chars: int = field(default=300)

    # Ingestion Settings
    feed_urls: List[str] = field(default_factory=lambda: list(DEFAULT_FEED_URLS))
    feed_timeout: int = field(default=10)
    ingest_limit: int = field(default=50)
    corpus_cache_path: str = field(default="data/news.json")
    enable_seed_corpus: bool = field(default=True)

    # Sessions & Concurrency
    session_ttl_seconds: int = field(default=3600)
    max_workers: int = field(default=4)

    log_level: str = field(default="INFO")

    def __post_init__(self):
        """Load configuration from environment and validate."""
        self._load_from_environment()
        self._validate()

    def _load_from_environment(self):
        """Load configuration from environment variables."""
        # Embedding Provider
        self.embedding_provider = self._get_env_str('EMBEDDING_PROVIDER', self.embedding_provider).lower()
        self.jina_api_key = self._get_env_secret('JINA_API_KEY', self.jina_api_key)
        self.jina_model = self._get_env_str('JINA_MODEL', self.jina_model)
        self.jina_base_url = self._get_env_str('JINA_BASE_URL', self.jina_base_url)
        self.embedding_timeout = self._get_env_int('EMBEDDING_TIMEOUT', self.embedding_timeout)
        self.embedding_batch_size = self._get_env_int('EMBEDDING_BATCH_SIZE', self.embedding_batch_size)
        self.hash_embedding_dimension = self._get_env_int('HASH_EMBEDDING_DIMENSION', self.hash_embedding_dimension)

        # Ollama Settings
        self.ollama_base_url = self._get_env_str('OLLAMA_BASE_URL', self.ollama_base_url)
        self.ollama_embedding_model = self._get_env_str('OLLAMA_EMBEDDING_MODEL', self.ollama_embedding_model)
        self.ollama_llm_model = self._get_env_str('OLLAMA_LLM_MODEL', self.ollama_llm_model)

        # Generation Provider
        self.generation_provider = self._get_env_str('GENERATION_PROVIDER', self.generation_provider).lower()
        self.gemini_api_key = self._get_env_secret('GEMINI_API_KEY', self.gemini_api_key)
        self.gemini_model = self._get_env_str('GEMINI_MODEL', self.gemini_model)
        self.generation_timeout = self._get_env_int('GENERATION_TIMEOUT', self.generation_timeout)
        self.temperature = self._get_env_float('LLM_TEMPERATURE', self.temperature)

        # Retrieval Settings
        self.top_k_default = self._get_env_int('TOP_K_DEFAULT', self.top_k_default)
        self.max_embedding_chars = self._get_env_int('MAX_EMBEDDING_CHARS', self.max_embedding_chars)
        self.context_excerpt_chars = self._get_env_int('CONTEXT_EXCERPT_CHARS', self.context_excerpt_chars)

        # Ingestion Settings
        self.feed_urls = self._get_env_list('NEWS_FEEDS', self.feed_urls)
        self.feed_timeout = self._get_env_int('FEED_TIMEOUT', self.feed_timeout)
        self.ingest_limit = self._get_env_int('INGEST_LIMIT', self.ingest_limit)
        self.corpus_cache_path = self._get_env_path('CORPUS_CACHE_PATH', self.corpus_cache_path)
        self.enable_seed_corpus = self._get_env_bool('ENABLE_SEED_CORPUS', self.enable_seed_corpus)

        # Sessions & Concurrency
        self.session_ttl_seconds = self._get_env_int('SESSION_TTL_SECONDS', self.session_ttl_seconds)
        self.max_workers = self._get_env_int('MAX_WORKERS', self.max_workers)

        self.log_level = self._get_env_str('LOG_LEVEL', self.log_level).upper()

    def _get_env_str(self, key: str, default: str) -> str:
        """Get string value from environment."""
        value = os.getenv(key, default)
        if isinstance(value, str):
            value = value.strip()
        return value

    def _get_env_secret(self, key: str, default: Optional[str]) -> Optional[str]:
        """Get an optional credential; blank values count as missing."""
        value = os.getenv(key, default)
        if isinstance(value, str):
            value = value.strip() or None
        return value

    def _get_env_int(self, key: str, default: int) -> int:
        """Get integer value from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid integer value for {key}: '{value}'"
            )

    def _get_env_float(self, key: str, default: float) -> float:
        """Get float value from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid float value for {key}: '{value}'"
            )

    def _get_env_bool(self, key: str, default: bool) -> bool:
        """Get boolean value from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        value = value.lower().strip()
        if value in ('true', '1', 'yes', 'on'):
            return True
        elif value in ('false', '0', 'no', 'off'):
            return False
        else:
            return default

    def _get_env_list(self, key: str, default: List[str]) -> List[str]:
        """Get comma-separated list value from environment."""
        value = os.getenv(key)
        if value is None:
            return default
        return [item.strip() for item in value.split(',') if item.strip()]

    def _get_env_path(self, key: str, default: str) -> str:
        """Get path value from environment with expansion."""
        value = os.getenv(key, default)
        if isinstance(value, str):
            value = value.strip()
            # Expand ~ to home directory
            value = os.path.expanduser(value)
        return value

    def _validate_url(self, field_name: str, url: str):
        try:
            parsed = urlparse(url)
            if not all([parsed.scheme, parsed.netloc]):
                raise ValueError("Missing scheme or netloc")
        except Exception:
            raise ConfigValidationError(
                f"Invalid URL for {field_name}: {url}"
            )

    def _validate(self):
        """Validate configuration parameters."""
        if self.embedding_provider not in EMBEDDING_PROVIDERS:
            raise ConfigValidationError(
                f"embedding_provider must be one of {EMBEDDING_PROVIDERS}, "
                f"got '{self.embedding_provider}'"
            )
        if self.generation_provider not in GENERATION_PROVIDERS:
            raise ConfigValidationError(
                f"generation_provider must be one of {GENERATION_PROVIDERS}, "
                f"got '{self.generation_provider}'"
            )

        # Validate non-empty strings
        for field_name in ('jina_model', 'ollama_embedding_model', 'ollama_llm_model',
                           'gemini_model', 'corpus_cache_path'):
            if not getattr(self, field_name):
                raise ConfigValidationError(f"{field_name} cannot be empty")

        # Validate positive integers
        positive_int_fields = [
            ('embedding_timeout', self.embedding_timeout),
            ('embedding_batch_size', self.embedding_batch_size),
            ('hash_embedding_dimension', self.hash_embedding_dimension),
            ('generation_timeout', self.generation_timeout),
            ('top_k_default', self.top_k_default),
            ('max_embedding_chars', self.max_embedding_chars),
            ('context_excerpt_chars', self.context_excerpt_chars),
            ('feed_timeout', self.feed_timeout),
            ('ingest_limit', self.ingest_limit),
            ('session_ttl_seconds', self.session_ttl_seconds),
            ('max_workers', self.max_workers),
        ]

        for field_name, value in positive_int_fields:
            if value <= 0:
                raise ConfigValidationError(
                    f"{field_name} must be positive, got {value}"
                )

        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigValidationError(
                f"temperature must be between 0 and 2, got {self.temperature}"
            )

        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigValidationError(f"Unknown log level: {self.log_level}")

        # Validate URL format
        self._validate_url('jina_base_url', self.jina_base_url)
        self._validate_url('ollama_base_url', self.ollama_base_url)
        for url in self.feed_urls:
            self._validate_url('feed_urls', url)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, masking credentials."""
        data = asdict(self)
        for key in _SECRET_FIELDS:
            if data.get(key):
                data[key] = '***'
        return data

    def __repr__(self) -> str:
        """String representation of configuration."""
        items = []
        for key, value in self.to_dict().items():
            items.append(f"{key}={value!r}")
        return f"Config({', '.join(items)})"

    def update(self, **kwargs):
        """
        Update configuration values with validation.

        Args:
            **kwargs: Configuration parameters to update

        Raises:
            ConfigValidationError: If validation fails
        """
        # Store original values for rollback
        original_values = {}

        try:
            for key, value in kwargs.items():
                if not hasattr(self, key):
                    raise ConfigValidationError(f"Unknown configuration parameter: {key}")
                original_values[key] = getattr(self, key)
                setattr(self, key, value)

            self._validate()

        except Exception:
            # Rollback on validation failure
            for key, value in original_values.items():
                setattr(self, key, value)
            raise

    def get_retrieval_config(self) -> Dict[str, Any]:
        """Get retrieval-related configuration."""
        return {
            'top_k_default': self.top_k_default,
            'max_embedding_chars': self.max_embedding_chars,
            'context_excerpt_chars': self.context_excerpt_chars,
            'embedding_batch_size': self.embedding_batch_size,
        }

    def get_ingestion_config(self) -> Dict[str, Any]:
        """Get ingestion-related configuration."""
        return {
            'feed_urls': list(self.feed_urls),
            'feed_timeout': self.feed_timeout,
            'ingest_limit': self.ingest_limit,
            'corpus_cache_path': self.corpus_cache_path,
            'enable_seed_corpus': self.enable_seed_corpus,
        }


# Singleton instance
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        Config: Global configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reset_config():
    """Reset the global configuration instance."""
    global _config_instance
    _config_instance = None
