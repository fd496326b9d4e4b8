"""
Transport session management.

Exactly one transport session is live at a time. In stdio mode it is bound
once for the life of the process. In HTTP mode every GET /sse replaces the
active session: the outgoing one is closed first, then the new one is
activated. POST /messages is routed to whichever session is active, or
rejected with 400 when there is none.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import anyio
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send


logger = logging.getLogger(__name__)

SSE_PATH = "/sse"
MESSAGES_PATH = "/messages"

_session_ids = itertools.count(1)


@dataclass(eq=False)
class TransportSession:
    """One bound transport. Closing it cancels the scope its server loop runs in."""

    kind: Literal["stdio", "sse"]
    transport: Optional[SseServerTransport] = None
    number: int = field(default_factory=lambda: next(_session_ids))
    cancel_scope: anyio.CancelScope = field(default_factory=anyio.CancelScope)
    closed: bool = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.cancel_scope.cancel()

    def __str__(self) -> str:
        return f"{self.kind}#{self.number}"


class TransportSessionManager:
    """Owns the protocol endpoint and the single active transport session."""

    def __init__(self, server: Server) -> None:
        self._server = server
        self._active: Optional[TransportSession] = None

    @property
    def active(self) -> Optional[TransportSession]:
        return self._active

    def rebind(self, session: TransportSession) -> Optional[TransportSession]:
        """
        Make `session` the active one. A previously active session is closed
        before the new one is activated, and returned to the caller.
        """
        previous = self._active
        if previous is not None and previous is not session:
            logger.warning("Replacing active transport session %s with %s", previous, session)
            previous.close()
        self._active = session
        logger.info("Transport session %s bound", session)
        return previous

    def release(self, session: TransportSession) -> None:
        """Forget `session` if it is still the active one."""
        session.closed = True
        if self._active is session:
            self._active = None
            logger.info("Transport session %s closed", session)

    # ---- stdio -------------------------------------------------------------------

    async def run_stdio(self) -> None:
        session = TransportSession(kind="stdio")
        self.rebind(session)
        try:
            with session.cancel_scope:
                async with stdio_server() as (read_stream, write_stream):
                    await self._server.run(read_stream, write_stream, self._server.create_initialization_options())
        finally:
            self.release(session)

    # ---- HTTP / SSE --------------------------------------------------------------

    async def handle_sse(self, scope: Scope, receive: Receive, send: Send) -> None:
        transport = SseServerTransport(MESSAGES_PATH)
        session = TransportSession(kind="sse", transport=transport)
        stream = _StreamState(send)
        logger.info("New SSE connection established")
        self.rebind(session)
        try:
            # cancelling the scope also tears down the SSE response task
            with session.cancel_scope:
                async with transport.connect_sse(scope, receive, stream.send) as (read_stream, write_stream):
                    await self._server.run(read_stream, write_stream, self._server.create_initialization_options())
        finally:
            self.release(session)

        if stream.open:
            # a displaced stream is cut mid-body; terminate it so the client sees a clean end
            logger.info("Closing SSE stream of %s", session)
            await stream.finish()

    async def handle_post_message(self, scope: Scope, receive: Receive, send: Send) -> None:
        session = self._active
        if session is None or session.transport is None:
            logger.warning("Rejected POST %s: no active SSE session", MESSAGES_PATH)
            response = PlainTextResponse("No active SSE session", status_code=400)
            await response(scope, receive, send)
            return
        await session.transport.handle_post_message(scope, receive, send)

    def http_app(self) -> Starlette:
        return Starlette(
            routes=[
                Route(SSE_PATH, endpoint=_AsgiEndpoint(self.handle_sse), methods=["GET"]),
                Route(MESSAGES_PATH, endpoint=_AsgiEndpoint(self.handle_post_message), methods=["POST"]),
            ],
        )

    def run_http(self, port: int, host: str = "0.0.0.0") -> None:
        import uvicorn

        logger.info("HTTP server listening on port %s", port)
        logger.info("SSE endpoint available at http://localhost:%s%s", port, SSE_PATH)
        logger.info("Message endpoint available at http://localhost:%s%s", port, MESSAGES_PATH)
        uvicorn.run(self.http_app(), host=host, port=port, log_level="info")


class _AsgiEndpoint:
    """Wrap a bound ASGI callable so Starlette's Route treats it as a raw ASGI app."""

    def __init__(self, app: Any) -> None:
        self._app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._app(scope, receive, send)


class _StreamState:
    """Tracks whether an ASGI response was started and not yet completed."""

    def __init__(self, send: Send) -> None:
        self._send = send
        self.started = False
        self.completed = False

    @property
    def open(self) -> bool:
        return self.started and not self.completed

    async def send(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.started = True
        elif message["type"] == "http.response.body" and not message.get("more_body", False):
            self.completed = True
        await self._send(message)

    async def finish(self) -> None:
        await self.send({"type": "http.response.body", "body": b"", "more_body": False})
