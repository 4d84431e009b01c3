"""
Tool metadata, schemas, and runtime validation.
"""

from __future__ import annotations

import difflib
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..exceptions import InvalidRequestError, ToolExecutionError

if TYPE_CHECKING:
    from ..driver.cancellation import CancellationToken

JsonSchema = Dict[str, Any]


def _python_type_to_json(param_type: type) -> str:
    """Map a Python type to a JSON schema type string."""
    type_map = {
        str: "string",
        int: "integer",
        float: "number",
        bool: "boolean",
        list: "array",
        dict: "object",
    }
    return type_map.get(param_type, "string")


@dataclass(frozen=True)
class ToolContext:
    """
    Per-completion context handed to every tool handler.

    Attributes:
        caller_id: Identity the completion runs for.
        cancellation: Token of the running completion; long-running handlers
            may poll it.
    """

    caller_id: str = ""
    cancellation: Optional["CancellationToken"] = None


ToolHandler = Callable[[ToolContext, Dict[str, Any]], Any]


@dataclass(frozen=True)
class ToolParameter:
    """
    Schema definition for a single tool parameter.

    Attributes:
        name: Parameter name as the model must send it.
        param_type: Python type (str, int, float, bool, list, dict).
        description: Human-readable description shown to the model.
        required: Whether this parameter must be provided (default: True).
        enum: Optional list of allowed string values.

    Example:
        >>> param = ToolParameter(
        ...     name="prompt",
        ...     param_type=str,
        ...     description="The topic for which to retrieve sources",
        ... )
    """

    name: str
    param_type: type
    description: str
    required: bool = True
    enum: Optional[List[str]] = None

    def to_schema(self) -> JsonSchema:
        schema: JsonSchema = {
            "type": _python_type_to_json(self.param_type),
            "description": self.description,
        }
        if self.enum:
            schema["enum"] = list(self.enum)
        return schema


class Tool:
    """
    A named capability the model can invoke, bound to its handler.

    The handler is called as ``handler(context, arguments)`` and must return
    a JSON string; dicts and lists are JSON encoded on its behalf.

    Attributes:
        name: Unique identifier for the tool within one request.
        description: What the tool does (shown to the model).
        parameters: ToolParameter definitions of the expected arguments.
        handler: Callable implementing the tool.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: List[ToolParameter],
        handler: ToolHandler,
    ):
        self.name = name
        self.description = description
        self.parameters = list(parameters)
        self.handler = handler

        self._validate_tool_definition()

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r}, parameters={[p.name for p in self.parameters]!r})"

    def _validate_tool_definition(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidRequestError("tool name cannot be empty")

        if not self.description or not self.description.strip():
            raise InvalidRequestError(f"tool '{self.name}' needs a description")

        param_names = [p.name for p in self.parameters]
        duplicates = sorted({name for name in param_names if param_names.count(name) > 1})
        if duplicates:
            raise InvalidRequestError(
                f"tool '{self.name}' has duplicate parameter(s): {', '.join(duplicates)}"
            )

        supported_types = {str, int, float, bool, list, dict}
        for param in self.parameters:
            if param.param_type not in supported_types:
                raise InvalidRequestError(
                    f"tool '{self.name}' parameter '{param.name}' has unsupported type "
                    f"{param.param_type!r}"
                )

    def schema(self) -> JsonSchema:
        """Return a JSON-schema style dict describing this tool."""
        properties = {param.name: param.to_schema() for param in self.parameters}
        required = [param.name for param in self.parameters if param.required]

        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }

    def validate(self, params: Dict[str, Any]) -> None:
        """
        Check a model-supplied argument mapping against the declared parameters.

        Raises:
            ValueError: On unexpected, missing, or mistyped arguments.
        """
        expected = {p.name for p in self.parameters}
        extra = set(params) - expected
        if extra:
            hints = []
            for name in sorted(extra):
                matches = difflib.get_close_matches(name, expected, n=1, cutoff=0.6)
                hints.append(f"'{name}' (did you mean '{matches[0]}'?)" if matches else f"'{name}'")
            raise ValueError(f"Unexpected parameter(s): {', '.join(hints)}")

        for param in self.parameters:
            if param.name not in params:
                if param.required:
                    raise ValueError(f"Missing required parameter '{param.name}'")
                continue

            value = params[param.name]
            if param.param_type is float:
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            else:
                ok = isinstance(value, param.param_type)
            if not ok:
                raise ValueError(
                    f"Parameter '{param.name}' must be of type {param.param_type.__name__}, "
                    f"got {type(value).__name__}"
                )

    def execute(self, context: ToolContext, params: Dict[str, Any]) -> str:
        """
        Validate arguments, run the handler, and return its JSON result.

        Raises:
            ToolExecutionError: If validation or the handler fails.
        """
        try:
            self.validate(params)
            result = self.handler(context, dict(params))
            if not isinstance(result, str):
                result = json.dumps(result)
            return result
        except Exception as exc:
            raise ToolExecutionError(tool_name=self.name, error=exc, params=params) from exc


__all__ = ["Tool", "ToolParameter", "ToolContext", "ToolHandler", "JsonSchema"]
