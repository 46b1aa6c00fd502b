"""HttpResponse factories for controllers and error handlers.

Usage::

    from relay.helpers import not_found, ok

    class GetUser:
        async def handle(self, request, state, next):
            user = await repo.find(request.params["id"])
            return ok(user) if user else not_found("User not found")
"""

import logging
from typing import Any

from relay.protocols import HttpResponse

logger = logging.getLogger("relay.helpers")


def ok(body: Any = None, headers: dict[str, str] | None = None) -> HttpResponse:
    return HttpResponse(200, body, headers)


def created(body: Any = None, headers: dict[str, str] | None = None) -> HttpResponse:
    return HttpResponse(201, body, headers)


def no_content() -> HttpResponse:
    return HttpResponse(204)


def _error(status: int, message: str) -> HttpResponse:
    return HttpResponse(status, {"error": message})


def bad_request(message: str = "Bad Request") -> HttpResponse:
    return _error(400, message)


def unauthorized(message: str = "Unauthorized") -> HttpResponse:
    return _error(401, message)


def forbidden(message: str = "Forbidden") -> HttpResponse:
    return _error(403, message)


def not_found(message: str = "Not Found") -> HttpResponse:
    return _error(404, message)


def conflict(message: str = "Conflict") -> HttpResponse:
    return _error(409, message)


def server_error(error: BaseException | None = None) -> HttpResponse:
    """500 response for an unexpected failure.

    The exception is logged with its traceback; its message is never
    sent to the client.
    """
    if error is not None:
        logger.error("Unhandled error in handler", exc_info=error)
    return _error(500, "Internal Server Error")
