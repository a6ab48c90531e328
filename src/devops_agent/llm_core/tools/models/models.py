from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from .context import ExecutionContext

ParameterType = Literal["string", "number", "integer", "boolean", "object", "array"]
ItemType = Literal["string", "number", "integer", "boolean"]


class ToolParameter(BaseModel):
    """
    A single, flat tool parameter.

    Attributes:
        name: Argument name as the model will send it.
        type: Primitive type tag.
        description: Natural-language description shown to the model.
        required: Whether the model must supply the argument.
        enum: Allowed values (string parameters only).
        items: Element type for ``array`` parameters.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParameterType
    description: str
    required: bool = False
    enum: Optional[List[str]] = None
    items: ItemType = "string"


class ToolDescriptor(BaseModel):
    """
    Represents a tool that can be offered to the model and executed by the agent.

    Attributes:
        name: The unique name of the tool within a registry.
        description: What the tool does, fed verbatim to the model.
        parameters: Ordered parameter specifications.
        func: The implementation. Called as ``func(arguments, context)`` unless
            ``keyword_call`` is set, in which case it is called as ``func(**arguments)``
            (plus ``context=`` when ``accepts_context`` is set).
        keyword_call: Call style, set by ``from_function``.
        accepts_context: Whether a keyword-style function takes the execution context.

    Descriptors are frozen once built.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: List[ToolParameter] = Field(default_factory=list)
    func: Callable[..., Any]
    keyword_call: bool = False
    accepts_context: bool = True

    @functools.cached_property
    def args_model(self) -> Type[BaseModel]:
        """Pydantic model used to validate arguments at dispatch time."""
        from ..schema import SchemaValidator

        return SchemaValidator.build_args_model(self.name, self.parameters)

    @property
    def required_parameters(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    def json_schema(self) -> Dict[str, Any]:
        """JSON-schema object describing the tool's arguments."""
        from ..schema import SchemaValidator

        return SchemaValidator.parameters_schema(self.parameters)

    def validate_arguments(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and filter arguments against the declared parameters.

        Raises:
            ToolValidationError: On missing required fields or type mismatches.
        """
        from ..schema import SchemaValidator

        return SchemaValidator.validate_arguments(self, arguments)

    async def execute(self, arguments: Dict[str, Any], context: ExecutionContext) -> Any:
        """Run the tool. Sync implementations run in a worker thread."""
        if self.keyword_call:
            kwargs = dict(arguments)
            if self.accepts_context:
                kwargs["context"] = context
            call = functools.partial(self.func, **kwargs)
        else:
            call = functools.partial(self.func, arguments, context)

        if inspect.iscoroutinefunction(self.func):
            return await call()

        result = await asyncio.to_thread(call)
        if inspect.isawaitable(result):
            return await result
        return result

    @classmethod
    def from_function(
        cls, func: Callable[..., Any], name: Optional[str] = None, description: Optional[str] = None
    ) -> "ToolDescriptor":
        """Build a descriptor from a plain function.

        The docstring becomes the description and each parameter must be declared as
        ``Annotated[T, Field(description="...")]``. A parameter named ``context``
        receives the ``ExecutionContext`` and is not shown to the model.

        Raises:
            ToolValidationError: If the docstring or a parameter description is missing.
        """
        from ..schema import ToolParameterFactory

        tool_name = name or func.__name__
        if description is None:
            description = ToolParameterFactory.get_docstring(func, tool_name)

        parameters: List[ToolParameter] = []
        accepts_context = False
        for param_name, param in inspect.signature(func).parameters.items():
            if param_name == "self":
                continue
            if param_name == "context":
                accepts_context = True
                continue
            parameters.append(ToolParameterFactory.build_parameter(param_name, param, tool_name))

        return cls(
            name=tool_name,
            description=description,
            parameters=parameters,
            func=func,
            keyword_call=True,
            accepts_context=accepts_context,
        )
