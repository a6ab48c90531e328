from .core import GroqModelAdapter, GROQ_BASE_URL

__all__ = ["GroqModelAdapter", "GROQ_BASE_URL"]
