"""Relay: an HTTP server layer with route groups and capability handlers.

Route groups are registered during setup and mounted when the server
starts listening. Handlers are plain functions or objects exposing
``handle(request, state, next)``; payload keys are converted between the
wire casing and the application casing around the latter.

Basic usage::

    from relay import HttpServer, ServerConfig, ok

    class Hello:
        async def handle(self, request, state, next):
            return ok({"message": "Hello, World!"})

    server = HttpServer(ServerConfig(port=3000))
    server.route("hello").get("/", Hello())
    server.listen()
"""

__version__ = "0.1.0-dev"
__all__ = [
    "BadRequest",
    "Controller",
    "HTTPError",
    "HttpResponse",
    "HttpServer",
    "Middleware",
    "NotFound",
    "RelayError",
    "Request",
    "Response",
    "RouteGroup",
    "ServerConfig",
    "SharedState",
    "bad_request",
    "conflict",
    "created",
    "forbidden",
    "no_content",
    "not_found",
    "ok",
    "server_error",
    "unauthorized",
]

_HELPERS = (
    "bad_request",
    "conflict",
    "created",
    "forbidden",
    "no_content",
    "not_found",
    "ok",
    "server_error",
    "unauthorized",
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import relay`` from pulling in uvicorn until a server is built.
    """
    if name == "HttpServer":
        from relay.server import HttpServer

        return HttpServer

    if name == "ServerConfig":
        from relay.config import ServerConfig

        return ServerConfig

    if name == "RouteGroup":
        from relay.routes import RouteGroup

        return RouteGroup

    if name == "SharedState":
        from relay.state import SharedState

        return SharedState

    if name == "Request":
        from relay.http.request import Request

        return Request

    if name == "Response":
        from relay.http.response import Response

        return Response

    if name in ("Controller", "HttpResponse", "Middleware"):
        from relay import protocols as _protocols

        return getattr(_protocols, name)

    if name in _HELPERS:
        from relay import helpers as _helpers

        return getattr(_helpers, name)

    if name in ("BadRequest", "HTTPError", "NotFound", "RelayError"):
        from relay import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
