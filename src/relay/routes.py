"""Route groups and the registry that owns them.

A ``RouteGroup`` is a path-scoped handler chain that is *not yet
mounted*: it collects handlers during setup and is attached to the
transport when the server starts listening. Groups are identified by
their ``(path, base_url)`` pair, and the registry hands out the same
object for the same pair, so separate modules can compose onto one
chain::

    server.route("users").use(Authenticate())
    server.route("users").get("/{id}", GetUser())   # same group
"""

import re
from collections.abc import Iterator
from typing import Any

from relay.adapter import MiddlewareAdapter
from relay.transport.router import Router

_REPEATED_SLASHES = re.compile(r"/{2,}")


def resolve_mount(base_url: str | None, path: str | None) -> str:
    """Join *base_url* and *path* into a normalized mount URL.

    Runs of ``/`` collapse into one, the result always starts with ``/``
    and never ends with one (except the root itself)::

        resolve_mount("//a//", "b/")  -> "/a/b"
        resolve_mount("/a", "/b")     -> "/a/b"
        resolve_mount("", "")         -> "/"
    """
    joined = _REPEATED_SLASHES.sub("/", f"/{base_url or ''}/{path or ''}")
    return "/" + joined.strip("/")


class RouteGroup:
    """A mountable chain of handlers identified by ``(path, base_url)``.

    Every handler passed to ``use`` or to a method helper goes through the
    server's :class:`MiddlewareAdapter` first, so raw functions and
    Controller/Middleware objects can be mixed freely.
    """

    __slots__ = ("_adapter", "base_url", "path", "router")

    def __init__(
        self,
        adapter: MiddlewareAdapter,
        path: str | None = None,
        base_url: str | None = None,
        router: Router | None = None,
    ) -> None:
        self.path = path
        self.base_url = base_url
        self.router = router if router is not None else Router()
        self._adapter = adapter

    def __repr__(self) -> str:
        return f"RouteGroup(path={self.path!r}, base_url={self.base_url!r}, handlers={len(self.router)})"

    @property
    def key(self) -> tuple[str | None, str | None]:
        return self.path, self.base_url

    def mount_url(self, default_base_url: str) -> str:
        """Where this group is mounted, given the server's default base URL."""
        base_url = self.base_url if self.base_url is not None else default_base_url
        return resolve_mount(base_url, self.path)

    # -- Registration --

    def use(self, *handlers: Any, path: str | None = None) -> "RouteGroup":
        """Append handlers to the chain, or scope them to *path* within the group."""
        self.router.use(*self._adapter.adapt_all(handlers), path=path or "/")
        return self

    def all(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.all(path, *self._adapter.adapt_all(handlers))
        return self

    def get(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.get(path, *self._adapter.adapt_all(handlers))
        return self

    def post(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.post(path, *self._adapter.adapt_all(handlers))
        return self

    def put(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.put(path, *self._adapter.adapt_all(handlers))
        return self

    def patch(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.patch(path, *self._adapter.adapt_all(handlers))
        return self

    def delete(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.delete(path, *self._adapter.adapt_all(handlers))
        return self

    def options(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.options(path, *self._adapter.adapt_all(handlers))
        return self

    def head(self, path: str, *handlers: Any) -> "RouteGroup":
        self.router.head(path, *self._adapter.adapt_all(handlers))
        return self


class RouteRegistry:
    """Insertion-ordered collection of route groups.

    Mutated during setup only; iterated once per materialization. The
    order of registration is the order of mounting, which decides
    precedence when mount URLs overlap.
    """

    __slots__ = ("_adapter", "_groups")

    def __init__(self, adapter: MiddlewareAdapter) -> None:
        self._adapter = adapter
        self._groups: dict[tuple[str | None, str | None], RouteGroup] = {}

    def route(self, path: str | None = None, base_url: str | None = None) -> RouteGroup:
        """Return the group for ``(path, base_url)``, creating it on first use."""
        group = self.get(path, base_url)
        if group is None:
            group = RouteGroup(self._adapter, path, base_url)
            self._groups[group.key] = group
        return group

    def get(self, path: str | None = None, base_url: str | None = None) -> RouteGroup | None:
        """Return the group for ``(path, base_url)`` without creating it."""
        return self._groups.get((path, base_url))

    def __iter__(self) -> Iterator[RouteGroup]:
        return iter(self._groups.values())

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, key: object) -> bool:
        return key in self._groups
