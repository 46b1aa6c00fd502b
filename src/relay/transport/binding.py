"""Binding an ASGI app to a TCP port.

``UvicornBinding`` runs a uvicorn server on a background thread so that
``HttpServer.listen()`` can return once the socket is bound, and
``close()`` can stop it gracefully (in-flight requests finish first).

Any object with an ``address`` attribute and a ``close()`` method can
stand in for a binding; ``HttpServer`` takes the factory as a parameter.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

import uvicorn

from relay.errors import BindError

logger = logging.getLogger("relay.transport")


class Binding(Protocol):
    """A transport bound to a port."""

    @property
    def address(self) -> tuple[str, int] | None: ...

    def close(self) -> None: ...

    def in_serving_thread(self) -> bool: ...


# (app, host=, port=, timeout=, log_level=, access_log=) -> Binding
BindingFactory = Callable[..., Binding]


class UvicornBinding:
    """A uvicorn server serving *app* on a daemon thread."""

    __slots__ = ("_address", "_server", "_thread")

    def __init__(
        self,
        app: Any,
        *,
        host: str,
        port: int,
        timeout: float = 5.0,
        log_level: str = "warning",
        access_log: bool = False,
    ) -> None:
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=log_level,
            access_log=access_log,
            log_config=None,
            lifespan="on",
        )
        self._server = uvicorn.Server(config)
        self._address: tuple[str, int] | None = None
        self._thread = threading.Thread(
            target=self._server.run,
            name=f"relay-http-{port}",
            daemon=True,
        )
        self._thread.start()
        self._wait_until_started(host, port, timeout)

    def _wait_until_started(self, host: str, port: int, timeout: float) -> None:
        deadline = time.monotonic() + timeout
        while not self._server.started:
            if not self._thread.is_alive():
                msg = f"Could not bind {host}:{port}"
                raise BindError(msg)
            if time.monotonic() > deadline:
                self.close()
                msg = f"Server did not start on {host}:{port} within {timeout}s"
                raise BindError(msg)
            time.sleep(0.01)

        for server in self._server.servers:
            for sock in server.sockets:
                bound_host, bound_port = sock.getsockname()[:2]
                self._address = (bound_host, bound_port)
                return

    @property
    def address(self) -> tuple[str, int] | None:
        """``(host, port)`` the socket is bound to."""
        return self._address

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def in_serving_thread(self) -> bool:
        """True when called from a request handler running on this binding."""
        return threading.current_thread() is self._thread

    def close(self) -> None:
        """Stop accepting connections, finish in-flight requests, join the thread.

        From the serving thread itself the shutdown is only requested;
        the thread exits once the current request has been answered.
        """
        if not self._thread.is_alive():
            return
        self._server.should_exit = True
        if self.in_serving_thread():
            logger.debug("Shutdown of %s requested from its own thread", self._thread.name)
            return
        self._thread.join()
        logger.debug("Server thread %s stopped", self._thread.name)
