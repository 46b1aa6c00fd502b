"""Relay exception hierarchy.

Shared across the transport, the adapter, the loader and the server so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class RelayError(Exception):
    """Base for all relay-specific errors."""


class ConfigurationError(RelayError):
    """Raised when a handler, route pattern or setting is invalid.

    Raised at registration time, before the server starts.
    """


class BindError(RelayError):
    """Raised when the transport cannot be bound to the requested port."""


@dataclass(frozen=True, slots=True)
class HTTPError(RelayError):
    """An error that maps directly to an HTTP status code.

    Raised by the transport, by handlers or by ``await next(error)``.
    The transport catches these and dispatches to the matching
    ``@server.error()`` handler, or renders a JSON error body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400: the request body could not be parsed."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404: no handler in the chain finished the response."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
