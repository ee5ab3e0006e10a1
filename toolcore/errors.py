"""
Error taxonomy for the tool registry and dispatch core.

Two families:

* ``ToolError`` and subclasses are raised while serving a single call.  The
  dispatcher converts every one of them into an error ``CallResult``; they
  never escape the call boundary.
* ``StartupError`` and subclasses are raised while building the registry or
  resolving credentials.  They are fatal and abort the process before any
  call is served.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Call-time (recoverable) errors
# ---------------------------------------------------------------------------

class ToolError(Exception):
    """Base class for failures that are reported back to the caller as data."""


class ValidationError(ToolError):
    """Raised when an argument is missing, empty, or of the wrong kind."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class TransportError(ToolError):
    """Raised when no authorized session could be produced or a request failed."""


class RemoteAPIError(ToolError):
    """Raised on a non-success status or an undecodable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CallCancelledError(ToolError):
    """Raised when the caller cancelled the call or its deadline passed."""


# ---------------------------------------------------------------------------
# Startup (fatal) errors
# ---------------------------------------------------------------------------

class StartupError(Exception):
    """Base class for errors that must stop the process from serving."""


class ConfigurationError(StartupError):
    """Raised when a registration-time dependency (e.g. credentials) is missing."""


class ToolRegistryError(StartupError):
    """Base error for tool registry failures."""


class ToolAlreadyRegisteredError(ToolRegistryError):
    """Raised when attempting to register a tool with a duplicate name."""


class RegistryFrozenError(ToolRegistryError):
    """Raised when registering after the registry has been frozen."""


class SchemaError(ToolRegistryError, ValueError):
    """Raised when a tool definition's parameter schema is invalid."""


class CapabilityRegistrationError(ToolRegistryError):
    """Raised when one or more capability areas failed to register their tools."""

    def __init__(self, failures: list[tuple[str, Exception]]) -> None:
        self.failures = failures
        lines = [f"error registering {area} tools: {exc}" for area, exc in failures]
        super().__init__("; ".join(lines))
