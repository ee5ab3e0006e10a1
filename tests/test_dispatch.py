"""
Tests for toolcore.dispatch: invoke never raises, every failure becomes an
error result, and call contexts cancel or expire.
"""

import os
import sys
import time

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from toolcore import schema
from toolcore.dispatch import CallContext, Dispatcher
from toolcore.errors import CallCancelledError, RemoteAPIError
from toolcore.registry import ToolRegistry
from toolcore.schema import CallResult, ToolDefinition


def _dispatcher(handler, params=None) -> Dispatcher:
    registry = ToolRegistry()
    registry.register(ToolDefinition(
        "demo",
        "Demo tool",
        params if params is not None else (schema.string("name", "A name", required=True),),
        handler,
    ))
    registry.freeze()
    return Dispatcher(registry)


class TestInvoke:

    def test_text_outcome_wrapped(self):
        result = _dispatcher(lambda ctx, args: f"hello {args['name']}").invoke("demo", {"name": "x"})
        assert result == CallResult.text("hello x")
        assert not result.is_error
        assert result.text_content == "hello x"

    def test_call_result_passed_through(self):
        custom = CallResult.error("custom failure")
        result = _dispatcher(lambda ctx, args: custom).invoke("demo", {"name": "x"})
        assert result is custom

    def test_unknown_tool(self):
        result = _dispatcher(lambda ctx, args: "").invoke("nope", {})
        assert result.is_error
        assert result.text_content == "Unknown tool: nope"

    def test_validation_error_skips_handler(self):
        called = []
        result = _dispatcher(lambda ctx, args: called.append(1)).invoke("demo", {"name": ""})
        assert result.is_error
        assert result.text_content == "name must be a non-empty string"
        assert called == []

    def test_tool_error_becomes_error_result(self):
        def handler(ctx, args):
            raise RemoteAPIError("Error from Container API: 404 Not Found", status_code=404)

        result = _dispatcher(handler).invoke("demo", {"name": "x"})
        assert result.is_error
        assert result.text_content == "Error from Container API: 404 Not Found"

    def test_unexpected_exception_contained(self):
        def handler(ctx, args):
            raise KeyError("boom")

        result = _dispatcher(handler).invoke("demo", {"name": "x"})
        assert result.is_error
        assert result.text_content.startswith("Unexpected error in demo: KeyError")

    def test_dispatcher_still_serves_after_failure(self):
        calls = []

        def handler(ctx, args):
            calls.append(args["name"])
            if len(calls) == 1:
                raise RemoteAPIError("first fails")
            return "ok"

        dispatcher = _dispatcher(handler)
        assert dispatcher.invoke("demo", {"name": "a"}).is_error
        assert dispatcher.invoke("demo", {"name": "b"}) == CallResult.text("ok")

    def test_handler_receives_typed_values(self):
        seen = {}

        def handler(ctx, args):
            seen.update(args)
            return ""

        params = (schema.number("n", "A number", default=5),)
        _dispatcher(handler, params).invoke("demo", {})
        assert seen == {"n": 5.0}


class TestCancellation:

    def test_cancelled_before_handler(self):
        called = []
        ctx = CallContext()
        ctx.cancel()
        result = _dispatcher(lambda c, a: called.append(1)).invoke("demo", {"name": "x"}, ctx)
        assert result.is_error
        assert result.text_content == "Request cancelled by the caller"
        assert called == []

    def test_cancelled_during_handler(self):
        def handler(ctx, args):
            ctx.cancel()
            return "too late"

        result = _dispatcher(handler).invoke("demo", {"name": "x"})
        assert result.is_error
        assert result.text_content == "Request cancelled by the caller"

    def test_default_timeout_applies(self):
        registry = ToolRegistry()
        registry.register(ToolDefinition("slow", "Slow", (), lambda ctx, args: time.sleep(0.05) or "done"))
        result = Dispatcher(registry, default_timeout=0.01).invoke("slow", {})
        assert result.is_error
        assert result.text_content == "Request deadline exceeded"


class TestCallContext:

    def test_no_deadline(self):
        ctx = CallContext()
        assert ctx.remaining() is None
        assert not ctx.expired
        ctx.check()

    def test_remaining_decreases(self):
        ctx = CallContext(timeout=10)
        remaining = ctx.remaining()
        assert 0 < remaining <= 10

    def test_expired_check_raises(self):
        ctx = CallContext(timeout=0)
        with pytest.raises(CallCancelledError):
            ctx.check()
