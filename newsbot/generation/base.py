"""
Generation Service Base

Defines the answer-generation contract, the fixed instruction template, and
the error taxonomy every generation client maps its failures onto.
"""

from abc import ABC, abstractmethod


APOLOGY_MESSAGE = (
    "I apologize, but I'm having trouble generating a response right now. "
    "Please try again later."
)

PROMPT_TEMPLATE = """You are a helpful news assistant. Based on the following news articles, answer the user's question accurately and concisely.

Context from recent news articles:
{context}

User question: {question}

Please provide a helpful answer based on the news context above. If the context doesn't contain relevant information, say so."""


class GenerationError(Exception):
    """Raised when the generation provider cannot produce an answer."""
    pass


class MissingAPIKeyError(GenerationError):
    """Raised when the provider requires credentials that are not configured."""
    pass


class GenerationTimeoutError(GenerationError):
    """Raised when the provider does not answer within the timeout."""
    pass


class EmptyResponseError(GenerationError):
    """Raised when the provider answers without usable text."""
    pass


def build_prompt(question: str, context: str) -> str:
    """Fill the instruction template with retrieved context and the raw question."""
    return PROMPT_TEMPLATE.format(context=context, question=question)


class BaseGenerator(ABC):
    """
    Maps a (question, context) pair to a natural-language answer.

    Implementations raise a GenerationError subclass for every failure and
    never return blank text.
    """

    provider_name = "base"

    @abstractmethod
    def generate(self, question: str, context: str) -> str:
        """Generate an answer grounded in ``context``."""
