"""Re-export the model adapter interface shared by all providers."""

from .base import ModelAdapter, FALLBACK_APOLOGY

__all__ = [
    "ModelAdapter",
    "FALLBACK_APOLOGY",
]
