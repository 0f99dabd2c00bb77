"""
News Chat Assistant

A retrieval-augmented chat system that answers questions about recent news:
feeds are ingested into an in-memory vector index, relevant articles are
retrieved per question, and an LLM generates a grounded answer inside a
multi-turn session.
"""

__version__ = "0.1.0"
