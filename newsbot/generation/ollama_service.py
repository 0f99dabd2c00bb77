"""
Ollama Generation Service

Answer generation with a local Ollama chat model via LangChain.
"""

import logging

import httpx
from langchain_ollama import ChatOllama

from .base import (
    BaseGenerator,
    EmptyResponseError,
    GenerationError,
    GenerationTimeoutError,
    build_prompt,
)

logger = logging.getLogger(__name__)


class OllamaGenerator(BaseGenerator):
    """Generation client backed by ``ChatOllama``."""

    provider_name = "ollama"

    def __init__(
        self,
        model: str = "llama3.1:latest",
        base_url: str = "http://localhost:11434",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: int = 30
    ):
        """
        Initialize the Ollama chat client.

        Args:
            model: Ollama model name for answer generation
            base_url: Base URL for Ollama service
            temperature: LLM temperature (higher = more creative)
            max_tokens: Maximum tokens in generated answer
            timeout: Request timeout in seconds
        """
        self.model = model
        self.timeout = timeout
        self.llm = ChatOllama(
            model=model,
            temperature=temperature,
            base_url=base_url,
            num_predict=max_tokens,
            client_kwargs={"timeout": timeout}
        )

    def generate(self, question: str, context: str) -> str:
        try:
            response = self.llm.invoke(build_prompt(question, context))
        except httpx.TimeoutException:
            raise GenerationTimeoutError(f"Ollama request timed out after {self.timeout}s")
        except Exception as e:
            raise GenerationError(f"Error generating answer with Ollama: {str(e)}")

        text = response.content if hasattr(response, 'content') else str(response)
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponseError("Ollama returned an empty answer")
        return text
