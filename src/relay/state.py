"""Request-scoped shared state.

One ``SharedState`` is created by the transport for every inbound request
and threaded through every handler of that request's chain. Handlers never
get the backing dict: they receive a read-only live view plus a setter
bound to this request's instance::

    async def load_user(request, response, next, state):
        view, set_state = state
        set_state({"user": await fetch_user(request)})
        await next()

Thread safety:
    The state lives on the request object. No two requests share one, so
    no locks are needed.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from relay._internal.types import StateTuple

StateKey = str | int | float


def is_state_key(key: object) -> bool:
    """Whether *key* may be stored in shared state.

    Only strings and numbers are accepted; ``bool`` is excluded even
    though it subclasses ``int``.
    """
    return isinstance(key, (str, int, float)) and not isinstance(key, bool)


class SharedState:
    """A per-request mapping with merge-only writes.

    ``set()`` merges string and numeric keys from a partial mapping and
    silently drops every other key.
    """

    __slots__ = ("_data", "_view")

    def __init__(self, initial: Mapping[Any, Any] | None = None) -> None:
        self._data: dict[StateKey, Any] = {}
        self._view: Mapping[StateKey, Any] = MappingProxyType(self._data)
        if initial:
            self.set(initial)

    @property
    def view(self) -> Mapping[StateKey, Any]:
        """Read-only view that reflects later writes."""
        return self._view

    def snapshot(self) -> Mapping[StateKey, Any]:
        """Read-only copy of the current key/value pairs."""
        return MappingProxyType(dict(self._data))

    def set(self, partial: Mapping[Any, Any]) -> None:
        """Merge the string/numeric keys of *partial* into the state."""
        if not isinstance(partial, Mapping):
            msg = f"Shared state updates must be mappings, got {type(partial).__name__}"
            raise TypeError(msg)
        for key, value in partial.items():
            if is_state_key(key):
                self._data[key] = value

    def as_tuple(self) -> StateTuple:
        """The ``(view, set_state)`` pair handed to handlers."""
        return self._view, self.set

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SharedState({self._data!r})"
