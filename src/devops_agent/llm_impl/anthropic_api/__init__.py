"""Anthropic-specific model adapter."""

from .core import AnthropicModelAdapter

__all__ = ["AnthropicModelAdapter"]
