"""Error pipeline for transport requests.

Every exception that escapes the handler chain (raised, or passed to
``await next(error)``) ends up here. Registered error handlers get the
first chance; otherwise a JSON error body is rendered.
"""

import inspect
import logging
from collections.abc import Mapping

from relay._internal.types import ErrorHandler
from relay.errors import HTTPError
from relay.http.request import Request
from relay.http.response import Response
from relay.protocols import HttpResponse

logger = logging.getLogger("relay.transport")


def find_error_handler(
    exc: BaseException,
    error_handlers: Mapping[int | type, ErrorHandler],
) -> ErrorHandler | None:
    """Look up a handler by exception type (most specific first), then status."""
    for exc_type in type(exc).__mro__:
        handler = error_handlers.get(exc_type)
        if handler is not None:
            return handler
    if isinstance(exc, HTTPError):
        return error_handlers.get(exc.status)
    return error_handlers.get(500)


async def call_error_handler(
    handler: ErrorHandler,
    request: Request,
    response: Response,
    exc: BaseException,
) -> None:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (exc), two (request, exc) or
    three (request, response, exc) args. They either write to the
    response themselves or return an ``HttpResponse``.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 3:
        result = handler(request, response, exc)
    elif len(params) == 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(exc)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result

    if result is not None and not response.finished:
        http_response = HttpResponse.coerce(result)
        if http_response.headers:
            response.set(http_response.headers)
        response.status(http_response.status_code).json(http_response.body)


def _render_default(exc: BaseException, response: Response) -> None:
    if isinstance(exc, HTTPError):
        response.status(exc.status)
        for name, value in exc.headers:
            response.set(name, value)
        response.json({"error": exc.detail or f"Error {exc.status}"})
    else:
        response.status(500).json({"error": "Internal Server Error"})


async def handle_error(
    exc: BaseException,
    request: Request,
    error_handlers: Mapping[int | type, ErrorHandler],
    settings: Mapping[str, object] | None = None,
) -> Response:
    """Map *exc* to a fresh Response.

    Whatever the chain had buffered before failing is discarded.
    """
    if isinstance(exc, HTTPError):
        logger.debug("%d %s %s: %s", exc.status, request.method, request.original_url, exc.detail)
    else:
        logger.error(
            "500 %s %s",
            request.method,
            request.original_url,
            exc_info=(type(exc), exc, exc.__traceback__),
        )

    response = Response(settings)
    handler = find_error_handler(exc, error_handlers)
    if handler is not None:
        try:
            await call_error_handler(handler, request, response, exc)
        except Exception:
            logger.exception("Error handler %r failed", handler)
            response = Response(settings)

    if not response.finished:
        _render_default(exc, response)
    return response
