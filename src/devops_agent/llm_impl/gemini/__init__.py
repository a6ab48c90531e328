"""Gemini-specific model adapter."""

from .core import GeminiModelAdapter

__all__ = ["GeminiModelAdapter"]
