"""Provider-agnostic message models for conversation history."""

import json
import time
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def new_id(prefix: str = "") -> str:
    """Return a random identifier, optionally prefixed (e.g. ``call_``)."""
    return f"{prefix}{uuid.uuid4().hex}"


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolInvocationRequest(BaseModel):
    """A tool call requested by the model.

    Attributes:
        id: Provider-assigned (or synthesized) call id. Tool results are correlated by it.
        name: Name of the requested tool.
        arguments: Decoded arguments.
        parse_error: Set when the provider's argument payload could not be decoded.
            The request is kept so that the call id still receives an (error) result.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("call_"))
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    parse_error: Optional[str] = None


class ToolResult(BaseModel):
    """Outcome of one tool invocation.

    ``result`` is meaningful only when ``error`` is None.
    """

    model_config = ConfigDict(frozen=True)

    call_id: str
    name: str
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_content(self) -> str:
        """Render the result as message content for the model."""
        if self.error is not None:
            return json.dumps({"error": self.error})
        if isinstance(self.result, str):
            return self.result
        return json.dumps(self.result, default=str)


class Message(BaseModel):
    """One turn in a conversation. Immutable once created.

    Attributes:
        id: Message id (provider response id or generated).
        role: Author of the message.
        content: Text content, possibly empty for pure tool-call turns.
        timestamp: Creation time, seconds since the epoch.
        tool_calls: Tool invocation requests (assistant messages only).
        tool_call_id: Correlation id of the answered request (tool messages only).
        tool_results: Results carried by a tool message.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    role: Role
    content: str = ""
    timestamp: float = Field(default_factory=time.time)
    tool_calls: Optional[List[ToolInvocationRequest]] = None
    tool_call_id: Optional[str] = None
    tool_results: Optional[List[ToolResult]] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls,
        content: str,
        tool_calls: Optional[List[ToolInvocationRequest]] = None,
        message_id: Optional[str] = None,
    ) -> "Message":
        """Build an assistant message. An empty tool call list is stored as None."""
        kwargs: Dict[str, Any] = {"role": Role.ASSISTANT, "content": content, "tool_calls": tool_calls or None}
        if message_id:
            kwargs["id"] = message_id
        return cls(**kwargs)

    @classmethod
    def from_tool_result(cls, result: ToolResult) -> "Message":
        """Wrap a single tool result into a tool-role message."""
        return cls(
            role=Role.TOOL,
            content=result.to_content(),
            tool_call_id=result.call_id,
            tool_results=[result],
        )
