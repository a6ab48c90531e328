"""Ollama-specific model adapter."""

from .core import OllamaModelAdapter, DEFAULT_OLLAMA_URL

__all__ = ["OllamaModelAdapter", "DEFAULT_OLLAMA_URL"]
