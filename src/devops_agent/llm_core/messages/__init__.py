"""Expose provider-agnostic message model types shared by all adapters."""

from .models import Message, Role, ToolInvocationRequest, ToolResult, new_id

__all__ = [
    "Message",
    "Role",
    "ToolInvocationRequest",
    "ToolResult",
    "new_id",
]
