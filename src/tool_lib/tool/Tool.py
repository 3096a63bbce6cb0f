"""Tool - a named, schema-described callable that a model may request.

Tools bundle a handler with the metadata a model needs to decide when to call it.
Handlers receive the payload as a plain dict that has already been validated
against the tool's schema (when called through invoke() or the Dispatcher), and
report domain failures by raising ToolExecutionError.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tool_lib.errors import ConfigurationError
from tool_lib.tool.ToolMetadata import ToolMetadata
from tool_lib.util.json_utils import JSONSchema, validate_payload


@dataclass(frozen=True)
class Tool[P, R]:
    """A capability that can be offered to a model.

    Type Parameters:
        P: Payload type the tool accepts
        R: Result type the tool returns

    Attributes:
        name: Unique identifier for this tool
        description: Human-readable description (useful for LLM tool selection)
        json_schema: JSON schema describing the payload format
        handler: The function that executes when the tool is invoked. May be a coroutine function.
    """

    name: str
    description: str
    json_schema: JSONSchema
    handler: Callable[[P], R]

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError("Tool name must be a non-empty string")
        if not isinstance(self.description, str):
            raise ConfigurationError(f"Tool '{self.name}' description must be a string")
        if not callable(self.handler):
            raise ConfigurationError(f"Tool '{self.name}' handler must be callable")
        # frozen dataclass, so bypass __setattr__. The tool keeps its own copy of the schema.
        object.__setattr__(self, "json_schema", JSONSchema(self.json_schema))

    @property
    def is_async(self) -> bool:
        """True if the handler is a coroutine function and must be awaited."""
        return inspect.iscoroutinefunction(self.handler)

    def __call__(self, payload: P) -> R:
        """Invoke the handler directly, without validating the payload."""
        return self.handler(payload)

    def validate(self, payload: Any) -> P:
        """Check a payload against this tool's schema.

        Raises:
            ValidationError: If the payload doesn't match
        """
        validate_payload(self.json_schema, payload)
        return payload

    def invoke(self, payload: Any) -> R:
        """Validate the payload, then invoke the handler.

        Handler errors are not caught here; use a Dispatcher for that.

        Raises:
            ValidationError: If the payload doesn't match the schema
        """
        return self.handler(self.validate(payload))

    async def ainvoke(self, payload: Any) -> Any:
        """Like invoke(), but awaits the result when the handler is async."""
        result = self.handler(self.validate(payload))
        if inspect.isawaitable(result):
            return await result
        return result

    def to_metadata(self) -> ToolMetadata:
        """Extract tool metadata (without handler) for advertising to a model."""
        return ToolMetadata(
            name=self.name,
            description=self.description,
            payload_json_schema=self.json_schema,
        )


def define_tool[P, R](
    name: str,
    description: str,
    json_schema: dict[str, Any],
    handler: Callable[[P], R],
) -> Tool[P, R]:
    """Create a tool.

    Args:
        name: Tool name, unique within the registry it will be added to
        description: Human-readable description
        json_schema: JSON schema describing the payload format
        handler: Function to call when the tool is invoked

    Returns:
        The created Tool

    Raises:
        ConfigurationError: If the name is empty, the handler isn't callable or the schema is malformed
    """
    return Tool(name=name, description=description, json_schema=json_schema, handler=handler)


def tool[P, R](
    json_schema: dict[str, Any],
    *,
    name: str | None = None,
    description: str | None = None,
) -> Callable[[Callable[[P], R]], Tool[P, R]]:
    """Decorator that turns a function into a Tool.

    The tool name defaults to the function name and the description to the first
    line of its docstring.

    Usage:
        @tool({"type": "object", "properties": {"a": {"type": "number"}}, "required": ["a"]})
        def double(payload: dict[str, float]) -> float:
            \"\"\"Double a number.\"\"\"
            return payload["a"] * 2
    """

    def decorator(fn: Callable[[P], R]) -> Tool[P, R]:
        doc = inspect.getdoc(fn) or ""
        return define_tool(
            name=name or fn.__name__,
            description=description if description is not None else doc.split("\n")[0],
            json_schema=json_schema,
            handler=fn,
        )

    return decorator
