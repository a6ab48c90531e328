"""Session-keyed conversation state."""

from .store import ConversationHistory, ConversationStore, DEFAULT_SESSION_TTL

__all__ = ["ConversationHistory", "ConversationStore", "DEFAULT_SESSION_TTL"]
