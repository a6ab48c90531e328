"""Tool registry: the set of tools offered to the model on every turn."""

from typing import Any, Callable, Dict, Iterable, List, Optional, Union, overload

from ..models import ToolDescriptor, ToolParameter
from ...exceptions import ToolNotFoundError, ToolRegistrationError
from ...logger import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """
    A central registry to manage and access all available tools.

    Holds the descriptors that are translated into provider tool schemas and maps
    tool names to their implementations. Names are unique; registering a name
    again replaces the previous descriptor.
    """

    def __init__(self, tools: Optional[Iterable[ToolDescriptor]] = None) -> None:
        """Initialize the ToolRegistry.

        Args:
            tools: Optional descriptors to register immediately.
        """
        self.tools: Dict[str, ToolDescriptor] = {}
        if tools:
            self.register_many(tools)

    def register(
        self,
        name_or_tool: Union[str, ToolDescriptor, Callable[..., Any]],
        description: Optional[str] = None,
        func: Optional[Callable[..., Any]] = None,
        parameters: Optional[List[ToolParameter]] = None,
    ) -> ToolDescriptor:
        """
        Register a tool.

        Accepts a ready ``ToolDescriptor``, a plain function (the descriptor is
        generated from its signature and docstring), or the individual components
        ``name``, ``description``, ``func`` and ``parameters``.

        Args:
            name_or_tool: A ``ToolDescriptor``, a tool name, or a Callable.
            description: Description of the tool. Required when passing a name.
            func: Implementation called as ``func(arguments, context)``. Required when passing a name.
            parameters: Parameter specifications when passing a name.

        Returns:
            The registered descriptor.

        Raises:
            ToolRegistrationError: If a name is given without ``func`` or ``description``.
        """
        if isinstance(name_or_tool, ToolDescriptor):
            tool = name_or_tool
        elif callable(name_or_tool):
            tool = ToolDescriptor.from_function(name_or_tool, description=description)
        else:
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")
            if description is None:
                raise ToolRegistrationError("If passing name as string, description is required.")
            tool = ToolDescriptor(name=name_or_tool, description=description, func=func, parameters=parameters or [])

        if tool.name in self.tools:
            logger.debug("Replacing previously registered tool '%s'.", tool.name)

        self.tools[tool.name] = tool
        logger.info("Registered tool: '%s'", tool.name)
        return tool

    def register_many(self, tools: Iterable[Union[ToolDescriptor, Callable[..., Any]]]) -> None:
        """Register several tools in order."""
        for tool in tools:
            self.register(tool)

    def unregister(self, tool_name: str) -> None:
        """Unregister a tool from the registry.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        if tool_name not in self.tools:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.")
        del self.tools[tool_name]
        logger.info("Unregistered tool: '%s'", tool_name)

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self.tools.get(name)

    def all(self) -> List[ToolDescriptor]:
        """All registered descriptors, in registration order."""
        return list(self.tools.values())

    @overload
    def tool(self, func: Callable[..., Any]) -> Callable[..., Any]: ...

    @overload
    def tool(self, func: None = None, *, name: Optional[str] = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]: ...

    def tool(self, func: Optional[Callable[..., Any]] = None, *, name: Optional[str] = None) -> Any:
        """A decorator to turn a function into a tool.

        Usable bare (``@registry.tool``) or with a name override (``@registry.tool(name="x")``).
        """

        def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
            self.register(ToolDescriptor.from_function(f, name=name))
            return f

        if func is not None:
            return decorator(func)
        return decorator

    def __contains__(self, name: object) -> bool:
        return name in self.tools

    def __len__(self) -> int:
        return len(self.tools)
