"""Server configuration.

ServerConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from dataclasses import dataclass

from relay.casing import SNAKE_TO_CAMEL, PayloadCasing


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServerConfig(port=3000, base_url="/api/v1")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Default base URL for route groups that do not carry their own.
    # Can still be changed with ``HttpServer.set_base_url()`` before start.
    base_url: str = ""

    # Seconds ``listen()`` waits for the socket to be bound
    startup_timeout: float = 5.0

    # uvicorn logging
    log_level: str = "warning"
    access_log: bool = False

    # Key casing applied around Controller/Middleware handlers
    casing: PayloadCasing = SNAKE_TO_CAMEL
