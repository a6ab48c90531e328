from .models import ExecutionContext, ToolDescriptor, ToolParameter
from .registry import ToolRegistry
from .schema import SchemaValidator, ToolParameterFactory

__all__ = [
    "ExecutionContext",
    "ToolDescriptor",
    "ToolParameter",
    "ToolRegistry",
    "SchemaValidator",
    "ToolParameterFactory",
]
