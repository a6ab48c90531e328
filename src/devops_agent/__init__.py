"""An LLM tool-calling agent for DevOps tasks."""

__version__ = "0.1.0"

from .config import AgentSettings, load_settings
from .llm_core import (
    Agent,
    ConversationStore,
    ExecutionContext,
    Message,
    ModelAdapter,
    ToolDescriptor,
    ToolParameter,
    ToolRegistry,
    ToolResult,
)
from .llm_impl import create_adapter
from .toolbox import default_tools

__all__ = [
    "AgentSettings",
    "load_settings",
    "Agent",
    "ConversationStore",
    "ExecutionContext",
    "Message",
    "ModelAdapter",
    "ToolDescriptor",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "create_adapter",
    "default_tools",
]
