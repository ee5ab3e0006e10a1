"""Tool registry and dispatch core: schemas, validation, dispatch and report rendering."""

from toolcore.dispatch import CallContext, Dispatcher
from toolcore.errors import (
    CallCancelledError,
    CapabilityRegistrationError,
    ConfigurationError,
    RemoteAPIError,
    StartupError,
    ToolAlreadyRegisteredError,
    ToolError,
    TransportError,
    ValidationError,
)
from toolcore.registry import ToolRegistry, register_capability_areas
from toolcore.schema import CallResult, ParameterSpec, ParamKind, TextBlock, ToolDefinition

__all__ = [
    "CallContext",
    "CallCancelledError",
    "CallResult",
    "CapabilityRegistrationError",
    "ConfigurationError",
    "Dispatcher",
    "ParamKind",
    "ParameterSpec",
    "RemoteAPIError",
    "StartupError",
    "TextBlock",
    "ToolAlreadyRegisteredError",
    "ToolDefinition",
    "ToolError",
    "ToolRegistry",
    "TransportError",
    "ValidationError",
    "register_capability_areas",
]
