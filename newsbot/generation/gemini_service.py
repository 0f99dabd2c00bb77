"""
Gemini Generation Service

Answer generation through the Google Gemini ``generateContent`` REST API.
"""

import logging
from typing import Optional

import requests

from .base import (
    BaseGenerator,
    EmptyResponseError,
    GenerationError,
    GenerationTimeoutError,
    MissingAPIKeyError,
    build_prompt,
)

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiGenerator(BaseGenerator):
    """Generation client for Gemini models."""

    provider_name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-1.5-flash",
        timeout: int = 30,
        temperature: Optional[float] = None
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key; requests fail with MissingAPIKeyError without it
            model: Gemini model name
            timeout: Request timeout in seconds
            temperature: Optional sampling temperature
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature

    def _payload(self, prompt: str) -> dict:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        if self.temperature is not None:
            payload["generationConfig"] = {"temperature": self.temperature}
        return payload

    def generate(self, question: str, context: str) -> str:
        """
        Generate an answer from Gemini.

        Raises:
            MissingAPIKeyError: If no API key is configured
            GenerationTimeoutError: If Gemini does not answer in time
            EmptyResponseError: If the response has no candidates, parts or text
            GenerationError: For any other transport or HTTP failure
        """
        if not self.api_key:
            raise MissingAPIKeyError("Gemini API key not configured")

        logger.info("Sending request to Gemini API...")
        try:
            response = requests.post(
                GEMINI_API_URL.format(model=self.model),
                params={"key": self.api_key},
                json=self._payload(build_prompt(question, context)),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            raise GenerationTimeoutError(f"Gemini request timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            raise GenerationError(f"Gemini request failed: {str(e)}")
        except ValueError as e:
            raise EmptyResponseError(f"Gemini returned invalid JSON: {e}")

        logger.info("Gemini API response received")

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates or not isinstance(candidates, list):
            raise EmptyResponseError(f"No candidates in Gemini response: {data}")

        candidate = candidates[0]
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not parts or not isinstance(parts, list) or not isinstance(parts[0], dict):
            raise EmptyResponseError(f"Invalid Gemini response structure: {candidate}")

        text = parts[0].get("text")
        if not isinstance(text, str):
            raise EmptyResponseError(f"Gemini answer text is not a string: {text!r}")
        if not text.strip():
            raise EmptyResponseError("Gemini returned an empty answer")

        return text
