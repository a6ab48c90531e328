"""OpenAI-specific model adapter."""

from .core import OpenAIModelAdapter

__all__ = ["OpenAIModelAdapter"]
