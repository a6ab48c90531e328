import inspect
import types
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Union, get_args, get_origin, Annotated

from pydantic.fields import FieldInfo

from ...exceptions import ToolValidationError
from ...logger import get_logger
from ..models.models import ToolParameter

logger = get_logger(__name__)

_TYPE_TAGS: Dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    dict: "object",
}


class ToolParameterFactory:
    """Capsules the extraction and validation of single function parameters."""

    @classmethod
    def build_parameter(cls, param_name: str, param: inspect.Parameter, tool_name: str) -> ToolParameter:
        """Creates a ToolParameter for a single function parameter.

        Args:
            param_name: The name of the parameter.
            param: The inspect.Parameter object.
            tool_name: The name of the tool for error reporting.

        Returns:
            The parameter specification.
        """
        annotation = param.annotation
        description = cls._extract_description(annotation=annotation, param_name=param_name, tool_name=tool_name)
        base_type = get_args(annotation)[0]

        base_type, optional = cls._unwrap_optional(base_type)
        type_tag, enum, items = cls._type_tag(base_type, param_name, tool_name)

        return ToolParameter(
            name=param_name,
            type=type_tag,  # type: ignore[arg-type]
            description=description,
            required=param.default is inspect.Parameter.empty and not optional,
            enum=enum,
            items=items,  # type: ignore[arg-type]
        )

    @staticmethod
    def get_docstring(func: Callable[..., Any], tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. LLMs need a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc

    @staticmethod
    def _extract_description(annotation: Any, param_name: str, tool_name: str) -> str:
        """Every tool parameter needs 'Annotated[<class>, Field(description='...')]' as its annotation.

        Raises:
            ToolValidationError: If the parameter is missing a Pydantic Field description.
        """
        if get_origin(annotation) is Annotated:
            for metadata in get_args(annotation):
                if isinstance(metadata, FieldInfo) and metadata.description:
                    return metadata.description

        msg = (
            f"Parameter '{param_name}' in tool '{tool_name}' is missing a description.\n"
            f"Usage: {param_name}: Annotated[Type, Field(description='...')] = ..."
        )
        logger.error(msg)
        raise ToolValidationError(msg)

    @staticmethod
    def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
        origin = get_origin(annotation)
        if origin is Union or origin is types.UnionType:
            non_null = [a for a in get_args(annotation) if a is not type(None)]
            if len(non_null) == 1:
                return non_null[0], True
        return annotation, False

    @staticmethod
    def _type_tag(annotation: Any, param_name: str, tool_name: str) -> Tuple[str, Optional[List[str]], str]:
        origin = get_origin(annotation)

        if origin is Literal:
            return "string", [str(v) for v in get_args(annotation)], "string"

        if annotation is list or origin is list:
            args = get_args(annotation)
            item_tag = _TYPE_TAGS.get(args[0], "string") if args else "string"
            if item_tag == "object":
                item_tag = "string"
            return "array", None, item_tag

        if origin is dict:
            return "object", None, "string"

        if annotation in _TYPE_TAGS:
            return _TYPE_TAGS[annotation], None, "string"

        msg = f"Parameter '{param_name}' in tool '{tool_name}' has an unsupported type: {annotation!r}"
        logger.error(msg)
        raise ToolValidationError(msg)
