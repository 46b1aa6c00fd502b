"""Shared type aliases used across relay modules."""

from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from relay.http.request import Request
    from relay.http.response import Response

# Continue the chain; pass an exception to divert into the error pipeline
Next: TypeAlias = Callable[..., Awaitable[None]]

# Uniform signature every chain entry has once mounted on the transport
TransportHandler: TypeAlias = Callable[["Request", "Response", Next], Awaitable[Any]]

# Read-only state view and its setter, as handed to handlers
StateView: TypeAlias = Mapping[Any, Any]
SetState: TypeAlias = Callable[[Mapping[Any, Any]], None]
StateTuple: TypeAlias = tuple[StateView, SetState]

# Error handler; receives (request?, response?, error?) in that order
ErrorHandler: TypeAlias = Callable[..., Any]
