"""Provider-specific model adapters."""

from .anthropic_api import AnthropicModelAdapter
from .factory import create_adapter
from .gemini import GeminiModelAdapter
from .groq import GroqModelAdapter
from .ollama_api import OllamaModelAdapter
from .openai_api import OpenAIModelAdapter

__all__ = [
    "AnthropicModelAdapter",
    "GeminiModelAdapter",
    "GroqModelAdapter",
    "OllamaModelAdapter",
    "OpenAIModelAdapter",
    "create_adapter",
]
