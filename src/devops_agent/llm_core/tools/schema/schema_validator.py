from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from ...exceptions import ToolValidationError
from ...logger import get_logger
from ..models.models import ToolParameter

if TYPE_CHECKING:
    from ..models.models import ToolDescriptor

logger = get_logger(__name__)

_PYTHON_TYPES: Dict[str, Any] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
    "object": Dict[str, Any],
}


class SchemaValidator:
    """
    Helper class for translating tool parameters into JSON schemas and validating
    model-supplied arguments against them.
    """

    @staticmethod
    def parameters_schema(parameters: List[ToolParameter]) -> Dict[str, Any]:
        """Build the JSON-schema object for a parameter list.

        Array parameters get typed ``items`` (string unless declared otherwise);
        enumerated values are copied over; required names are collected in order.

        Args:
            parameters: The tool's ordered parameter specifications.

        Returns:
            A ``{"type": "object", "properties": ..., "required": [...]}`` schema.
        """
        properties: Dict[str, Any] = {}
        for param in parameters:
            prop: Dict[str, Any] = {"type": param.type, "description": param.description}
            if param.enum:
                prop["enum"] = list(param.enum)
            if param.type == "array":
                prop["items"] = {"type": param.items}
            properties[param.name] = prop

        return {
            "type": "object",
            "properties": properties,
            "required": [p.name for p in parameters if p.required],
        }

    @staticmethod
    def build_args_model(tool_name: str, parameters: List[ToolParameter]) -> Type[BaseModel]:
        """Create a strict pydantic model mirroring the parameter list.

        Strict mode rejects cross-type coercion such as ``"5"`` for a number.
        Unknown arguments are ignored.
        """
        fields: Dict[str, Tuple[Any, Any]] = {}
        for param in parameters:
            annotation = SchemaValidator._annotation_for(param)
            if param.required:
                fields[param.name] = (annotation, Field(..., description=param.description))
            else:
                fields[param.name] = (Optional[annotation], Field(default=None, description=param.description))

        return create_model(  # type: ignore[call-overload, no-any-return]
            f"{tool_name}Args",
            __config__=ConfigDict(strict=True, extra="ignore"),
            **fields,
        )

    @staticmethod
    def validate_arguments(tool: "ToolDescriptor", arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validate arguments for a tool.

        Args:
            tool: The descriptor whose ``args_model`` is used.
            arguments: Raw arguments from the model.

        Returns:
            The validated arguments, limited to the ones the model actually supplied.

        Raises:
            ToolValidationError: If a required argument is missing or has the wrong type.
        """
        try:
            validated = tool.args_model.model_validate(arguments)
        except ValidationError as exc:
            msg = f"Argument validation failed: {exc}"
            logger.warning("Validation error for '%s': %s", tool.name, exc)
            raise ToolValidationError(msg) from exc
        return validated.model_dump(exclude_unset=True)

    @staticmethod
    def _annotation_for(param: ToolParameter) -> Any:
        if param.enum:
            return Literal[tuple(param.enum)]  # type: ignore[valid-type]
        if param.type == "array":
            return List[_PYTHON_TYPES[param.items]]  # type: ignore[misc]
        return _PYTHON_TYPES[param.type]
