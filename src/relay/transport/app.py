"""The ASGI transport.

``Transport`` is the only component that touches raw ASGI. For every
HTTP scope it builds a :class:`Request` (with a fresh shared state), runs
it through the root :class:`Router`, routes failures through the error
pipeline, and sends the buffered :class:`Response`.

Usage::

    transport = Transport()
    transport.use(log_requests)
    transport.mount("/api/users", users_router)

    # hand it to any ASGI server
    uvicorn.run(transport)
"""

import logging
from collections.abc import Callable
from typing import Any

from relay._internal.asgi import Receive, Scope, Send
from relay._internal.types import ErrorHandler, TransportHandler
from relay.errors import NotFound
from relay.http.request import Request
from relay.http.response import Response
from relay.transport.errors import handle_error
from relay.transport.router import Router
from relay.transport.sender import send_response

logger = logging.getLogger("relay.transport")

# Settings understood by the transport itself
KNOWN_SETTINGS = frozenset({"json_indent", "json_sort_keys"})


async def _chain_end(error: BaseException | None = None) -> None:
    """Final ``next`` of the root router: surface errors passed down the chain."""
    if error is not None:
        raise error


class Transport:
    """An express-style ASGI application.

    Mutable during setup (``use``, ``mount``, ``set``, ``error``), then
    only read while serving.
    """

    __slots__ = ("error_handlers", "router", "settings")

    def __init__(self, settings: dict[str, Any] | None = None) -> None:
        self.router = Router()
        self.settings: dict[str, Any] = dict(settings or {})
        self.error_handlers: dict[int | type, ErrorHandler] = {}

    # -- Setup --

    def use(self, *handlers: TransportHandler, path: str = "/") -> None:
        """Append handlers that run for every request under *path*."""
        self.router.use(*handlers, path=path)

    def mount(self, path: str, router: Router) -> None:
        """Attach *router* at *path*; it sees paths relative to the mount."""
        self.router.use(router, path=path)

    def set(self, setting: str, value: Any) -> None:
        """Change a transport setting (``json_indent``, ``json_sort_keys``)."""
        if setting not in KNOWN_SETTINGS:
            logger.warning("Unknown transport setting %r", setting)
        self.settings[setting] = value

    def error(self, code_or_exception: int | type[BaseException]) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self.error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        request = await Request.from_asgi(scope, receive)
        response = await self.handle(request)
        await send_response(response, send, head=request.method == "HEAD")

    async def handle(self, request: Request) -> Response:
        """Run *request* through the chain and return the finished response."""
        response = Response(self.settings)
        try:
            request.parse_body()
            await self.router.dispatch(request, response, _chain_end)
            if not response.finished:
                raise NotFound(f"Cannot {request.method} {request.path}")
        except Exception as exc:
            response = await handle_error(exc, request, self.error_handlers, self.settings)
        return response

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        # Startup hooks run in HttpServer before binding; lifespan is acknowledged only.
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
