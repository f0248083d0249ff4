"""
Ollama API client wrapper.

Implements the ModelClient protocol from core.catalog.summarizer.
"""

from .client import OllamaClient, OllamaConfig, create_ollama_client

__all__ = ["OllamaClient", "OllamaConfig", "create_ollama_client"]
