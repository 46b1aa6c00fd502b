"""Adapting handlers to the transport signature.

Two kinds of handler can sit in a chain:

- **raw** functions, transport-native, called as
  ``handler(request, response, next, (state, set_state))`` with no key
  casing applied and their return value passed through;
- **capability** objects (:class:`~relay.protocols.Controller` /
  :class:`~relay.protocols.Middleware`) exposing
  ``handle(request, (state, set_state), next)``. Around them the adapter
  converts ``request.body``, ``request.params`` and ``request.query`` to
  the internal key casing, and writes the returned ``HttpResponse`` with
  its body converted back to the external casing.

Exceptions are never caught here; they travel to the transport's error
pipeline.
"""

from collections.abc import Iterable
from typing import Any

from relay._internal.invoke import invoke
from relay._internal.types import Next, TransportHandler
from relay.casing import SNAKE_TO_CAMEL, PayloadCasing
from relay.errors import ConfigurationError
from relay.http.request import Request
from relay.http.response import Response
from relay.protocols import Controller, HttpResponse


def is_capability_handler(handler: Any) -> bool:
    """Whether *handler* exposes a callable ``handle`` (instances only)."""
    return not isinstance(handler, type) and isinstance(handler, Controller) and callable(handler.handle)


class MiddlewareAdapter:
    """Wraps handlers into ``(request, response, next)`` coroutines."""

    __slots__ = ("casing",)

    def __init__(self, casing: PayloadCasing = SNAKE_TO_CAMEL) -> None:
        self.casing = casing

    def adapt(self, handler: Any) -> TransportHandler:
        """Return the transport-invocable form of *handler*."""
        if is_capability_handler(handler):
            return self._adapt_capability(handler)
        if callable(handler):
            return self._adapt_raw(handler)
        msg = (
            f"Cannot use {handler!r} as a handler: expected a callable or an "
            "object with a handle(request, state, next) method."
        )
        raise ConfigurationError(msg)

    def adapt_all(self, handlers: Iterable[Any]) -> list[TransportHandler]:
        return [self.adapt(handler) for handler in handlers]

    def _adapt_raw(self, handler: Any) -> TransportHandler:
        async def raw_handler(request: Request, response: Response, next: Next) -> Any:
            return await invoke(handler, request, response, next, request.shared_state.as_tuple())

        raw_handler.__name__ = getattr(handler, "__name__", type(handler).__name__)
        raw_handler.__wrapped__ = handler  # type: ignore[attr-defined]
        return raw_handler

    def _adapt_capability(self, handler: Any) -> TransportHandler:
        casing = self.casing

        async def capability_handler(request: Request, response: Response, next: Next) -> None:
            request.body = casing.to_internal(request.body)
            request.params = casing.to_internal(request.params)
            request.query = casing.to_internal(request.query)

            result = await invoke(handler.handle, request, request.shared_state.as_tuple(), next)
            if result is None:
                return

            http_response = HttpResponse.coerce(result)
            if http_response.headers:
                response.set(http_response.headers)
            response.status(http_response.status_code).json(casing.to_external(http_response.body))

        capability_handler.__name__ = type(handler).__name__
        capability_handler.__wrapped__ = handler  # type: ignore[attr-defined]
        return capability_handler
