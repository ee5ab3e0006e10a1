"""Shared types for tool definitions and call results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Union

from toolcore.errors import SchemaError

if TYPE_CHECKING:
    from toolcore.dispatch import CallContext


class ParamKind(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class ParameterSpec:
    """One accepted argument of a tool."""

    name: str
    kind: ParamKind
    description: str
    required: bool = False
    default: Any = None
    # Zero, negative and NaN values fall back to the default.
    positive: bool = False

    def json_schema(self) -> dict[str, Any]:
        prop: dict[str, Any] = {"type": self.kind.value, "description": self.description}
        if self.default is not None:
            prop["default"] = self.default
        return prop


def string(name: str, description: str, *, required: bool = False, default: str | None = None) -> ParameterSpec:
    return ParameterSpec(name, ParamKind.STRING, description, required=required, default=default)


def number(
    name: str,
    description: str,
    *,
    required: bool = False,
    default: float | None = None,
    positive: bool = False,
) -> ParameterSpec:
    return ParameterSpec(
        name,
        ParamKind.NUMBER,
        description,
        required=required,
        default=None if default is None else float(default),
        positive=positive,
    )


def boolean(name: str, description: str, *, required: bool = False, default: bool | None = None) -> ParameterSpec:
    return ParameterSpec(name, ParamKind.BOOLEAN, description, required=required, default=default)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextBlock:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class CallResult:
    """Uniform success-or-error envelope returned from every invocation."""

    content: tuple[TextBlock, ...] = ()
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> "CallResult":
        return cls(content=(TextBlock(text),))

    @classmethod
    def error(cls, message: str) -> "CallResult":
        return cls(content=(TextBlock(message),), is_error=True)

    @property
    def text_content(self) -> str:
        return "\n".join(block.text for block in self.content)


HandlerOutcome = Union[str, CallResult]
Handler = Callable[["CallContext", "dict[str, Any]"], HandlerOutcome]


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-described operation bound to its handler."""

    name: str
    description: str
    parameters: tuple[ParameterSpec, ...]
    handler: Handler = field(compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise SchemaError("Tool name must be a non-empty string")
        # Accept any sequence at construction, store a tuple.
        object.__setattr__(self, "parameters", tuple(self.parameters))
        seen: set[str] = set()
        for spec in self.parameters:
            if spec.name in seen:
                raise SchemaError(f"Tool '{self.name}' declares parameter '{spec.name}' twice")
            if spec.required and spec.default is not None:
                raise SchemaError(
                    f"Tool '{self.name}': required parameter '{spec.name}' cannot have a default"
                )
            if spec.positive and spec.default is None:
                raise SchemaError(
                    f"Tool '{self.name}': positive parameter '{spec.name}' needs a default"
                )
            seen.add(spec.name)

    def input_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's arguments, in declaration order."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {spec.name: spec.json_schema() for spec in self.parameters},
        }
        required = [spec.name for spec in self.parameters if spec.required]
        if required:
            schema["required"] = required
        return schema
