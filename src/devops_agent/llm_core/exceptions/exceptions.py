"""
Custom exception classes for the DevOps agent.

Tool errors never leave the agent loop: they are turned into error results that
the model can read. Configuration and session errors are raised to the caller.
Provider SDK errors are not wrapped and propagate with their original type.
"""


class AgentError(Exception):
    """Base exception for all agent errors."""

    pass


class LLMToolError(AgentError):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when a tool cannot be registered."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the registry."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised when a tool fails during execution."""

    pass


class ToolValidationError(LLMToolError):
    """Raised when tool arguments or a tool definition are invalid."""

    pass


class WorkspaceAccessError(LLMToolError):
    """Raised when a tool argument resolves to a path outside the workspace root."""

    pass


class ProviderConfigurationError(AgentError):
    """Raised when a model provider is unknown or missing its credentials."""

    pass


class SessionBusyError(AgentError):
    """Raised when a session already has a request in flight and queuing is disabled."""

    pass
