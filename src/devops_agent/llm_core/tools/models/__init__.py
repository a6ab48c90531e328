"""Tool-related data models."""

from .context import ExecutionContext
from .models import ToolDescriptor, ToolParameter, ParameterType

__all__ = ["ExecutionContext", "ToolDescriptor", "ToolParameter", "ParameterType"]
