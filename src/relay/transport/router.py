"""Express-style router: an ordered list of layers.

A layer is one handler plus the path it answers to. ``use()`` layers
match by prefix and strip the matched prefix from ``request.path`` while
they run; method layers (``get()``, ``post()``, ...) match the whole
remaining path. A Router is itself a transport handler, so routers nest::

    users = Router()
    users.get("/{id:int}", show_user)

    api = Router()
    api.use(users, path="/users")

Routers are built during setup and only read while serving.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from relay._internal.types import Next, TransportHandler
from relay.errors import ConfigurationError
from relay.http.request import Request
from relay.http.response import Response
from relay.transport.params import CONVERTERS, convert_param

# Placeholder styles from other frameworks, rejected with a hint
_FOREIGN_PARAM_RE = re.compile(r"^(?::\w+|<[^>]+>)$")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``    (is_param=False)
    Param:   ``/{id}``     (is_param=True, param_name="id")
    Typed:   ``/{id:int}`` (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id:int}"    -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{rest:path}" -> [..., PathSegment("{rest:path}", is_param=True, param_type="path")]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if _FOREIGN_PARAM_RE.match(part):
            msg = f"Route path {path!r} uses {part!r}; relay expects {{param}} placeholders."
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            param_name, _, param_type = inner.partition(":")
            param_type = param_type or "str"
            if not param_name.isidentifier():
                msg = f"Invalid parameter name {param_name!r} in route path {path!r}"
                raise ConfigurationError(msg)
            if param_type not in CONVERTERS:
                msg = f"Unknown converter {param_type!r} in route path {path!r}"
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(value=part, is_param=True, param_name=param_name, param_type=param_type)
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


def compile_path(path: str, *, end: bool) -> tuple[re.Pattern[str], tuple[tuple[str, str], ...]]:
    """Compile *path* to a regex and its ``(name, type)`` parameters.

    With ``end=False`` the pattern matches a prefix ending on a segment
    boundary; with ``end=True`` it must consume the whole path (a
    trailing slash is tolerated).
    """
    parts: list[str] = []
    params: list[tuple[str, str]] = []
    for segment in parse_path(path):
        if segment.is_param:
            pattern, _ = CONVERTERS[segment.param_type]
            name = segment.param_name or ""
            parts.append(f"/(?P<{name}>{pattern})")
            params.append((name, segment.param_type))
        else:
            parts.append("/" + re.escape(segment.value))
    body = "".join(parts)
    tail = "/?$" if end else "(?=/|$)"
    return re.compile(f"^{body}{tail}"), tuple(params)


@dataclass(frozen=True, slots=True)
class Layer:
    """One handler and the requests it applies to."""

    path: str
    handler: TransportHandler
    methods: frozenset[str] | None  # None: any method
    end: bool  # True: whole-path match, False: prefix match
    pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)
    params: tuple[tuple[str, str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pattern, params = compile_path(self.path, end=self.end)
        object.__setattr__(self, "pattern", pattern)
        object.__setattr__(self, "params", params)

    def match(self, method: str, path: str) -> tuple[str, dict[str, Any]] | None:
        """Return ``(matched_prefix, params)`` or ``None``."""
        if self.methods is not None and method not in self.methods:
            if not (method == "HEAD" and "GET" in self.methods):
                return None
        found = self.pattern.match(path)
        if found is None:
            return None
        values: dict[str, Any] = {}
        for name, param_type in self.params:
            raw = found.group(name)
            try:
                values[name] = convert_param(raw, param_type)
            except ValueError:
                return None
        prefix = "" if self.end else found.group(0).rstrip("/")
        return prefix, values


class Router:
    """An ordered, nestable chain of handlers."""

    __slots__ = ("_layers",)

    def __init__(self) -> None:
        self._layers: list[Layer] = []

    def __len__(self) -> int:
        return len(self._layers)

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    # -- Registration --

    def use(self, *handlers: TransportHandler, path: str = "/") -> None:
        """Append prefix-matched handlers (all methods)."""
        for handler in handlers:
            self._layers.append(Layer(path, _checked(handler), None, end=False))

    def add(self, methods: frozenset[str] | None, path: str, *handlers: TransportHandler) -> None:
        """Append whole-path handlers restricted to *methods*."""
        if not handlers:
            msg = f"No handlers given for route {path!r}"
            raise ConfigurationError(msg)
        for handler in handlers:
            self._layers.append(Layer(path, _checked(handler), methods, end=True))

    def all(self, path: str, *handlers: TransportHandler) -> None:
        self.add(None, path, *handlers)

    def get(self, path: str, *handlers: TransportHandler) -> None:
        self.add(frozenset({"GET"}), path, *handlers)

    def post(self, path: str, *handlers: TransportHandler) -> None:
        self.add(frozenset({"POST"}), path, *handlers)

    def put(self, path: str, *handlers: TransportHandler) -> None:
        self.add(frozenset({"PUT"}), path, *handlers)

    def patch(self, path: str, *handlers: TransportHandler) -> None:
        self.add(frozenset({"PATCH"}), path, *handlers)

    def delete(self, path: str, *handlers: TransportHandler) -> None:
        self.add(frozenset({"DELETE"}), path, *handlers)

    def options(self, path: str, *handlers: TransportHandler) -> None:
        self.add(frozenset({"OPTIONS"}), path, *handlers)

    def head(self, path: str, *handlers: TransportHandler) -> None:
        self.add(frozenset({"HEAD"}), path, *handlers)

    # -- Dispatch --

    async def __call__(self, request: Request, response: Response, next: Next) -> None:
        await self.dispatch(request, response, next)

    async def dispatch(self, request: Request, response: Response, done: Next) -> None:
        """Run the request through the matching layers, then ``done``."""
        await self._run_from(0, request, response, done)

    async def _run_from(
        self,
        index: int,
        request: Request,
        response: Response,
        done: Next,
        error: BaseException | None = None,
    ) -> None:
        if error is not None:
            await done(error)
            return

        while index < len(self._layers):
            layer = self._layers[index]
            index += 1
            matched = layer.match(request.method, request.path)
            if matched is None:
                continue

            prefix, params = matched
            saved = (request.path, request.base_url, request.params)
            if prefix:
                request.base_url = saved[1] + prefix
                request.path = saved[0][len(prefix) :] or "/"
            request.params = {**saved[2], **params}

            async def next_layer(err: BaseException | None = None, _index: int = index) -> None:
                request.path, request.base_url, request.params = saved
                await self._run_from(_index, request, response, done, err)

            try:
                await layer.handler(request, response, next_layer)
            finally:
                request.path, request.base_url, request.params = saved
            return

        await done()


def _checked(handler: Any) -> TransportHandler:
    if not callable(handler):
        msg = f"Handlers must be callable, got {handler!r}"
        raise ConfigurationError(msg)
    return handler
