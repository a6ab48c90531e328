"""Public exports for the provider-neutral agent core."""

from .base import ModelAdapter, FALLBACK_APOLOGY
from .agent import Agent, MAX_ITERATIONS, ITERATION_LIMIT_MESSAGE
from .conversation import ConversationHistory, ConversationStore
from .exceptions import (
    AgentError,
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    WorkspaceAccessError,
    ProviderConfigurationError,
    SessionBusyError,
)
from .logger import get_logger, setup_logging
from .messages import Message, Role, ToolInvocationRequest, ToolResult
from .tools import ExecutionContext, ToolDescriptor, ToolParameter, ToolRegistry, SchemaValidator
from .usage import UsageRecorder, NullUsageRecorder, CostTracker

__all__ = [
    "ModelAdapter",
    "FALLBACK_APOLOGY",
    "Agent",
    "MAX_ITERATIONS",
    "ITERATION_LIMIT_MESSAGE",
    "ConversationHistory",
    "ConversationStore",
    "AgentError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "WorkspaceAccessError",
    "ProviderConfigurationError",
    "SessionBusyError",
    "get_logger",
    "setup_logging",
    "Message",
    "Role",
    "ToolInvocationRequest",
    "ToolResult",
    "ExecutionContext",
    "ToolDescriptor",
    "ToolParameter",
    "ToolRegistry",
    "SchemaValidator",
    "UsageRecorder",
    "NullUsageRecorder",
    "CostTracker",
]
