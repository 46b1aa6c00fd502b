"""The HTTP server object.

Mutable during setup (route groups, app-level handlers, startup hooks,
base URL). Routes are materialized onto a fresh :class:`Transport` when
the server starts listening, and again on every ``refresh()``.

One ``HttpServer`` is built at the composition root and handed to the
code that registers routes; there is no global accessor::

    server = HttpServer(ServerConfig(base_url="/api"))
    server.on_start([connect_database])
    await server.routes_directory("app/routes")
    await server.listen_async(3000, lambda: print("listening"))

Lifecycle:
    ``CREATED -> STARTED``. ``listen``/``listen_async`` start the server
    once; later calls do nothing. ``close()`` stops the binding but keeps
    the server marked as started, so the only way back up is
    ``refresh()``, which rebinds with the same port and callback.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import anyio
import anyio.to_thread

from relay._internal.invoke import invoke
from relay._internal.types import ErrorHandler, TransportHandler
from relay.adapter import MiddlewareAdapter
from relay.config import ServerConfig
from relay.loader import discover_route_modules, load_routes
from relay.routes import RouteGroup, RouteRegistry
from relay.transport.app import KNOWN_SETTINGS, Transport
from relay.transport.binding import Binding, BindingFactory, UvicornBinding

logger = logging.getLogger("relay.server")

Callback = Callable[[], Any]


@dataclass(frozen=True, slots=True)
class ListenerOptions:
    """Arguments of the last successful listen, reused by ``refresh()``."""

    port: int
    callback: Callback | None = None


async def run_startup_hooks(hooks: Iterable[Callback]) -> None:
    """Run *hooks* concurrently and wait for all of them.

    A failing hook cancels the others; the failure propagates wrapped
    in an ``ExceptionGroup``.
    """
    async with anyio.create_task_group() as tg:
        for hook in hooks:
            tg.start_soon(invoke, hook)


class HttpServer:
    """Route registry, startup hooks and the lifecycle of one binding."""

    __slots__ = (
        "_adapter",
        "_address",
        "_app",
        "_app_handlers",
        "_base_url",
        "_binder",
        "_binding",
        "_error_handlers",
        "_listener_options",
        "_registry",
        "_settings",
        "_started",
        "_startup_callbacks",
        "config",
    )

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        binder: BindingFactory | None = None,
    ) -> None:
        self.config: ServerConfig = config or ServerConfig()
        self._adapter = MiddlewareAdapter(self.config.casing)
        self._registry = RouteRegistry(self._adapter)
        self._app_handlers: list[tuple[str, list[TransportHandler]]] = []
        self._settings: dict[str, Any] = {}
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_callbacks: tuple[Callback, ...] = ()
        self._base_url: str = self.config.base_url
        self._started = False
        self._binder: BindingFactory = binder or UvicornBinding
        self._binding: Binding | None = None
        self._listener_options: ListenerOptions | None = None
        self._address: tuple[str, int] | None = None
        self._app: Transport | None = None

    # -- State --

    @property
    def started(self) -> bool:
        return self._started

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def registry(self) -> RouteRegistry:
        return self._registry

    @property
    def startup_callbacks(self) -> tuple[Callback, ...]:
        return self._startup_callbacks

    @property
    def listener_options(self) -> ListenerOptions | None:
        return self._listener_options

    def address(self) -> tuple[str, int] | None:
        """The bound ``(host, port)``, or ``None`` before the first listen."""
        return self._address

    # -- Setup --

    def set_base_url(self, url: str) -> None:
        """Set the default base URL for groups without their own.

        Only effective before the server has started.
        """
        if self._started:
            logger.warning("Only set the default base url if the server is not started")
            return
        self._base_url = url

    def on_start(self, callbacks: Sequence[Callback]) -> None:
        """Replace the startup hooks awaited by ``listen_async``."""
        self._startup_callbacks = tuple(callbacks)

    def use(self, *handlers: Any, path: str | None = None) -> None:
        """Add app-level handlers that run before every route group."""
        self._app_handlers.append((path or "/", self._adapter.adapt_all(handlers)))

    def set_shared_state(self, state: Mapping[Any, Any]) -> None:
        """Seed every request's shared state with *state*."""
        defaults = dict(state)

        def seed_shared_state(request: Any, response: Any, next: Any, shared: Any) -> Any:
            _, set_state = shared
            set_state(defaults)
            return next()

        self.use(seed_shared_state)

    def set(self, setting: str, value: Any) -> None:
        """Change a transport setting (``json_indent``, ``json_sort_keys``)."""
        if setting not in KNOWN_SETTINGS:
            logger.warning("Unknown transport setting %r", setting)
        self._settings[setting] = value

    def error(self, code_or_exception: int | type[BaseException]) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register a transport error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    def adapter(self, handler: Any) -> TransportHandler:
        """Adapt a single handler to the transport signature."""
        return self._adapter.adapt(handler)

    # -- Route groups --

    def route(self, path: str | None = None, base_url: str | None = None) -> RouteGroup:
        """Return the group for ``(path, base_url)``, creating it on first use."""
        return self._registry.route(path, base_url)

    def get_route(self, path: str | None = None, base_url: str | None = None) -> RouteGroup | None:
        """Return the group for ``(path, base_url)`` if it exists."""
        return self._registry.get(path, base_url)

    async def routes_directory(
        self,
        directory: str | Path,
        target: RouteGroup | str | None = None,
        handlers: Sequence[Any] = (),
    ) -> RouteGroup:
        """Load every route module in *directory* onto one group.

        *target* is either the group to register on, or a base URL for
        the group ``route("", base_url)``; by default the server's base
        URL is used. *handlers* are attached to the group before any
        module's ``setup`` runs, and only after every module has been imported.
        """
        modules = list(discover_route_modules(directory))

        if isinstance(target, RouteGroup):
            group = target
        else:
            base_url = target if isinstance(target, str) else self._base_url
            group = self.route("", base_url)

        if handlers:
            group.use(*handlers)

        count = await load_routes(modules, group)
        logger.info("Loaded %d route module(s) from %s", count, directory)
        return group

    # -- Materialization --

    def _materialize(self) -> Transport:
        """Build a fresh transport with app handlers and every group mounted."""
        transport = Transport(self._settings)
        transport.error_handlers.update(self._error_handlers)
        for path, handlers in self._app_handlers:
            transport.use(*handlers, path=path)
        for group in self._registry:
            url = group.mount_url(self._base_url)
            transport.mount(url, group.router)
            logger.debug("Mounted %r at %s", group, url)
        return transport

    def get_app(self) -> Transport:
        """The ASGI application, materialized without binding a port.

        Use it to serve through an external ASGI server or to test
        in-process. Registrations made after the first call are picked
        up only by the next ``listen``/``refresh``.
        """
        if self._app is None:
            self._app = self._materialize()
        return self._app

    # -- Lifecycle --

    def listen(self, port: int | str | None = None, callback: Callback | None = None) -> Binding | None:
        """Mount all groups and bind to *port*; no-op if already started."""
        if self._started:
            return None
        self._started = True

        self._app = self._materialize()
        return self._bind(ListenerOptions(self._port(port), callback))

    async def listen_async(
        self,
        port: int | str | None = None,
        callback: Callback | None = None,
    ) -> Binding | None:
        """Await the startup hooks, then mount and bind like ``listen``.

        If a hook fails nothing is mounted or bound, and the failure
        propagates to the caller.
        """
        if self._started:
            return None
        self._started = True

        await run_startup_hooks(self._startup_callbacks)

        self._app = self._materialize()
        options = ListenerOptions(self._port(port), callback)
        binding = await anyio.to_thread.run_sync(self._open, options)
        self._bound(options)
        return binding

    def refresh(self) -> Binding | None:
        """Close the binding, remount every group and bind again.

        Uses the port and callback of the last listen. No-op if the
        server never started.

        Called from a request handler, the old binding cannot stop until
        that request returns, so the rebind runs on a separate thread and
        ``None`` is returned; the callback fires once the port is bound.
        """
        if not self._started or self._listener_options is None:
            return None
        if self._binding is not None and self._binding.in_serving_thread():
            threading.Thread(target=self._deferred_refresh, name="relay-refresh", daemon=True).start()
            return None
        return self._rebind(self._listener_options)

    def close(self) -> None:
        """Stop the binding. The server stays marked as started."""
        if not self._started:
            return
        if self._close_binding():
            logger.info("Shutting down server")

    # -- Internal --

    def _port(self, port: int | str | None) -> int:
        return int(port) if port is not None else self.config.port

    def _rebind(self, options: ListenerOptions) -> Binding:
        self._close_binding()
        logger.info("Refreshing server")

        self._app = self._materialize()
        return self._bind(options)

    def _deferred_refresh(self) -> None:
        assert self._listener_options is not None
        try:
            self._rebind(self._listener_options)
        except Exception:
            logger.exception("Refresh from a request handler failed")

    def _bind(self, options: ListenerOptions) -> Binding:
        binding = self._open(options)
        self._bound(options)
        return binding

    def _open(self, options: ListenerOptions) -> Binding:
        assert self._app is not None
        self._binding = self._binder(
            self._app,
            host=self.config.host,
            port=options.port,
            timeout=self.config.startup_timeout,
            log_level=self.config.log_level,
            access_log=self.config.access_log,
        )
        self._address = self._binding.address
        return self._binding

    def _bound(self, options: ListenerOptions) -> None:
        self._listener_options = options
        logger.info("Listening on %s", self._address)
        if options.callback is not None:
            options.callback()

    def _close_binding(self) -> bool:
        if self._binding is None:
            return False
        self._binding.close()
        self._binding = None
        return True
