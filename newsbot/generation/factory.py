"""Build the configured generation provider client."""

from ..config import Config
from .base import BaseGenerator
from .gemini_service import GeminiGenerator
from .ollama_service import OllamaGenerator


def create_generator(config: Config) -> BaseGenerator:
    """Return the generation client selected by ``config.generation_provider``."""
    if config.generation_provider == 'ollama':
        return OllamaGenerator(
            model=config.ollama_llm_model,
            base_url=config.ollama_base_url,
            temperature=config.temperature,
            timeout=config.generation_timeout
        )
    return GeminiGenerator(
        api_key=config.gemini_api_key,
        model=config.gemini_model,
        timeout=config.generation_timeout,
        temperature=config.temperature
    )
