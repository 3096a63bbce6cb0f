"""ToolMetadata - tool information visible to models.

ToolMetadata contains only the metadata about a tool (name, description, schema)
without the handler. This is what a Session advertises to the model; the actual
handler stays in the ToolRegistry.
"""

from __future__ import annotations

from dataclasses import dataclass

from tool_lib.util.json_utils import JSONSchema


@dataclass(frozen=True)
class ToolMetadata:
    """Tool metadata visible to models (no handler).

    Attributes:
        name: Unique identifier for this tool
        description: Human-readable description (useful for LLM tool selection)
        payload_json_schema: JSON schema describing the payload format
    """

    name: str
    description: str
    payload_json_schema: JSONSchema
