"""Express-style ASGI transport.

Transport -- ASGI application with a root router and error pipeline
Router -- ordered, nestable handler chain with prefix and method layers
UvicornBinding -- serves a Transport on a TCP port from a background thread
"""

from relay.transport.app import Transport
from relay.transport.binding import Binding, UvicornBinding
from relay.transport.router import Router

__all__ = ["Binding", "Router", "Transport", "UvicornBinding"]
