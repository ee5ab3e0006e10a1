"""
MCP protocol adapter.

Exposes every registered tool over the Model Context Protocol, either on
stdin/stdout or as an SSE listener.  Each ``tools/call`` request is executed
by the Dispatcher in a worker thread with its own ``CallContext``; cancelling
the request cancels that context and returns control immediately.
"""

from __future__ import annotations

import logging
from typing import Any

import anyio
import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from toolcore.dispatch import CallContext, Dispatcher

logger = logging.getLogger("operable.server")


class ToolCallFailed(Exception):
    """Carries an error CallResult's text to the MCP SDK, which reports it with isError set."""


def build_server(
    dispatcher: Dispatcher,
    name: str,
    version: str | None = None,
    call_timeout: float | None = None,
) -> Server:
    server: Server = Server(name, version=version)
    registry = dispatcher.registry

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=definition.name,
                description=definition.description,
                inputSchema=definition.input_schema(),
            )
            for definition in registry.definitions()
        ]

    @server.call_tool()
    async def call_tool(tool_name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        ctx = CallContext(timeout=call_timeout)
        try:
            result = await anyio.to_thread.run_sync(
                dispatcher.invoke, tool_name, arguments or {}, ctx, abandon_on_cancel=True
            )
        except anyio.get_cancelled_exc_class():
            ctx.cancel()
            logger.info("Call to %s cancelled by the client", tool_name)
            raise

        if result.is_error:
            raise ToolCallFailed(result.text_content)
        return [types.TextContent(type="text", text=block.text) for block in result.content]

    return server


async def serve_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def parse_listen_address(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (host optional, as in ``:8080``) into its parts."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address: {addr!r} (expected HOST:PORT or :PORT)")
    return host or "0.0.0.0", int(port)


def build_sse_app(server: Server):
    """Return a Starlette app serving ``GET /sse`` and ``POST /messages/``."""
    from mcp.server.sse import SseServerTransport
    from starlette.applications import Starlette
    from starlette.responses import Response
    from starlette.routing import Mount, Route

    transport = SseServerTransport("/messages/")

    async def handle_sse(request):
        async with transport.connect_sse(request.scope, request.receive, request._send) as streams:
            await server.run(streams[0], streams[1], server.create_initialization_options())
        return Response()

    return Starlette(
        routes=[
            Route("/sse", endpoint=handle_sse, methods=["GET"]),
            Mount("/messages/", app=transport.handle_post_message),
        ]
    )


def serve_sse(server: Server, addr: str) -> None:
    import uvicorn

    host, port = parse_listen_address(addr)
    uvicorn.run(build_sse_app(server), host=host, port=port, log_level="warning")
