"""Export the exception hierarchy used across the agent loop, tools and providers."""

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

__all__ = [
    "AgentError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "WorkspaceAccessError",
    "ProviderConfigurationError",
    "SessionBusyError",
]
