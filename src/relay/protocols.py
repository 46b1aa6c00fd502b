"""Capability-typed handlers and the value they return.

A controller or middleware is any object with a ``handle`` method::

    class GetUser:
        async def handle(self, request, state, next):
            view, set_state = state
            user = await users.find(request.params["userId"])
            return ok(user)

No base class required. The adapter checks the shape, not the lineage.
``handle`` returns an :class:`HttpResponse` to have the adapter write
the response, or ``None`` when it called ``next`` (or finished the raw
response) itself.
"""

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from relay._internal.types import Next, StateTuple

if TYPE_CHECKING:
    from relay.http.request import Request


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Status, body and optional headers produced by a controller."""

    status_code: int
    body: Any = None
    headers: Mapping[str, str] | None = None

    @classmethod
    def coerce(cls, value: "HttpResponse | Mapping[str, Any]") -> "HttpResponse":
        """Accept an ``HttpResponse`` or a mapping with the same keys."""
        if isinstance(value, HttpResponse):
            return value
        if isinstance(value, Mapping) and "status_code" in value:
            return cls(
                status_code=int(value["status_code"]),
                body=value.get("body"),
                headers=value.get("headers"),
            )
        msg = f"Expected an HttpResponse or a mapping with 'status_code', got {value!r}"
        raise TypeError(msg)


@runtime_checkable
class Controller(Protocol):
    """Endpoint handler: usually returns an ``HttpResponse``."""

    def handle(
        self,
        request: "Request",
        state: StateTuple,
        next: Next,
    ) -> Awaitable[HttpResponse | Mapping[str, Any] | None]: ...


@runtime_checkable
class Middleware(Protocol):
    """Chain step: usually updates state and awaits ``next()``."""

    def handle(
        self,
        request: "Request",
        state: StateTuple,
        next: Next,
    ) -> Awaitable[HttpResponse | Mapping[str, Any] | None]: ...
