"""
Argument validation against a tool's parameter schema.

Turns the untyped argument map received from the caller into typed values
(``str``, ``float``, ``bool``) or raises a ``ValidationError`` for the first
violated constraint.  There is no coercion across kinds: a string is never
accepted where a number is expected, and a boolean is never a number.
Positive-only numbers that arrive as zero or below take their default.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from toolcore.errors import ValidationError
from toolcore.schema import ParameterSpec, ParamKind


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _check_kind(spec: ParameterSpec, value: Any) -> Any:
    if spec.kind is ParamKind.STRING:
        if isinstance(value, str):
            return value
    elif spec.kind is ParamKind.NUMBER:
        # bool is an int subclass; reject it explicitly.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            number = float(value)
            if spec.positive and not number > 0:
                return spec.default
            return number
    elif spec.kind is ParamKind.BOOLEAN:
        if isinstance(value, bool):
            return value
    raise ValidationError(
        spec.name,
        f"{spec.name} must be a {spec.kind.value}, got {json_type_name(value)}",
    )


def validate_arguments(
    parameters: Iterable[ParameterSpec],
    arguments: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Validate *arguments* against *parameters* and return typed values.

    Every declared parameter appears in the result: validated values for the
    ones supplied, declared defaults (possibly ``None``) for optional ones
    that were absent.  Keys not declared in the schema are ignored.
    """
    arguments = arguments or {}
    values: dict[str, Any] = {}

    for spec in parameters:
        raw = arguments.get(spec.name)

        if spec.required:
            if _is_missing(raw):
                if spec.kind is ParamKind.STRING:
                    raise ValidationError(spec.name, f"{spec.name} must be a non-empty string")
                raise ValidationError(spec.name, f"{spec.name} is required")
            values[spec.name] = _check_kind(spec, raw)
            continue

        if raw is None:
            values[spec.name] = spec.default
        else:
            values[spec.name] = _check_kind(spec, raw)

    return values
