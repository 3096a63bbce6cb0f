from __future__ import annotations

import copy
import json
from typing import Any

import jsonschema

from tool_lib.errors import ConfigurationError, ValidationError


type JSONPyPrimitive = str | int | float | bool | None
"""Python primitives that convert to JSON without special treatment."""

type JSONPyDict = dict[str, JSONPyValue]

type JSONPyList = list[JSONPyValue]

type JSONPyValue = JSONPyPrimitive | JSONPyDict | JSONPyList


class JSONSchema(dict[str, JSONPyValue]):
    """A validated JSON Schema dictionary.

    Validates against the JSON Schema meta-schema to ensure the schema is well-formed.
    Holds a deep copy of the data it was built from, so later changes to the caller's
    dict don't reach it.
    """

    def __new__(cls, data: Any) -> JSONSchema:
        if not isinstance(data, dict):
            raise ConfigurationError("JSONSchema must be a dict")
        try:
            jsonschema.Draft202012Validator.check_schema(data)
        except jsonschema.SchemaError as e:
            raise ConfigurationError(f"Invalid JSON Schema: {e.message}") from e
        return super().__new__(cls)

    def __init__(self, data: Any) -> None:
        super().__init__(copy.deepcopy(data))

    def __reduce__(self) -> tuple[type[JSONSchema], tuple[dict[str, Any]]]:
        """Support pickling and deepcopy."""
        return (JSONSchema, (dict(self),))


_SUBSCHEMA_MAPS = ("properties", "patternProperties", "$defs", "definitions")
_SUBSCHEMA_LISTS = ("prefixItems",)
_SUBSCHEMAS = ("items", "additionalProperties", "contains")
_COMBINATORS = ("allOf", "anyOf", "oneOf", "not", "if", "$ref")


def _closed(schema: Any) -> Any:
    """Object schemas reject undeclared properties unless they say otherwise.

    A schema counts as an object schema if its type is "object" or it declares
    properties. Nested schemas are closed too. Schemas that compose others
    (allOf, $ref, ...) are left open, since closing one branch would reject the
    properties declared by another.
    """
    if not isinstance(schema, dict):
        return schema

    closed = dict(schema)
    for key in _SUBSCHEMA_MAPS:
        if isinstance(closed.get(key), dict):
            closed[key] = {name: _closed(sub) for name, sub in closed[key].items()}
    for key in _SUBSCHEMA_LISTS:
        if isinstance(closed.get(key), list):
            closed[key] = [_closed(sub) for sub in closed[key]]
    for key in _SUBSCHEMAS:
        if isinstance(closed.get(key), dict):
            closed[key] = _closed(closed[key])

    declares_object = closed.get("type") == "object" or "properties" in closed
    if (
        declares_object
        and "additionalProperties" not in closed
        and "unevaluatedProperties" not in closed
        and not any(key in closed for key in _COMBINATORS)
    ):
        closed["additionalProperties"] = False
    return closed


def validate_payload(schema: dict[str, Any], value: Any) -> None:
    """Validate a tool payload against a JSON schema.

    All violations are collected (ordered by location) into a single error so the
    model gets the full picture in one round.

    Args:
        schema: The tool's JSON schema
        value: The untrusted payload

    Raises:
        ValidationError: If the payload doesn't match the schema
    """
    validator = jsonschema.Draft202012Validator(_closed(schema))
    errors = sorted(validator.iter_errors(value), key=lambda e: e.json_path)
    if errors:
        raise ValidationError("; ".join(f"{e.json_path}: {e.message}" for e in errors))


def to_string(value: Any) -> str:
    """Convert a value to a JSON string. Values that aren't JSON-compatible fall back to their str() form."""
    return json.dumps(value, default=str)
