"""
Call dispatch: lookup, validation, handler invocation and result normalization.

``Dispatcher.invoke`` is the sole entry point used by the protocol layer.  It
never raises: unknown tools, validation failures, transport and remote API
failures, cancellations and unexpected handler exceptions all come back as a
``CallResult`` with ``is_error=True``.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Mapping

from toolcore.errors import CallCancelledError, ToolError, ValidationError
from toolcore.registry import ToolRegistry
from toolcore.schema import CallResult
from toolcore.validation import validate_arguments

logger = logging.getLogger("operable.dispatch")


class CallContext:
    """Cancellation flag and optional deadline for a single invocation.

    ``cancel()`` may be called from another thread; the handler observes it
    through ``check()`` before each external round trip.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._cancelled = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        if self.cancelled:
            raise CallCancelledError("Request cancelled by the caller")
        if self.expired:
            raise CallCancelledError("Request deadline exceeded")


class Dispatcher:
    """Routes validated calls to handlers registered in a ToolRegistry."""

    def __init__(self, registry: ToolRegistry, default_timeout: float | None = None) -> None:
        self._registry = registry
        self._default_timeout = default_timeout

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def invoke(
        self,
        tool_name: str,
        arguments: Mapping[str, Any] | None = None,
        ctx: CallContext | None = None,
    ) -> CallResult:
        definition = self._registry.lookup(tool_name)
        if definition is None:
            logger.warning("Call to unknown tool %r", tool_name)
            return CallResult.error(f"Unknown tool: {tool_name}")

        try:
            values = validate_arguments(definition.parameters, arguments)
        except ValidationError as exc:
            logger.info("Rejected %s call: %s", tool_name, exc)
            return CallResult.error(str(exc))

        if ctx is None:
            ctx = CallContext(timeout=self._default_timeout)

        try:
            ctx.check()
            outcome = definition.handler(ctx, values)
            ctx.check()
        except ToolError as exc:
            logger.warning("Tool %s failed: %s", tool_name, exc)
            return CallResult.error(str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error in tool %s", tool_name)
            return CallResult.error(f"Unexpected error in {tool_name}: {type(exc).__name__}: {exc}")

        if isinstance(outcome, CallResult):
            return outcome
        return CallResult.text(outcome)
