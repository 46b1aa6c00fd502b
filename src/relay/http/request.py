"""Mutable HTTP request.

Unlike a read-only request model, every field a handler may rewrite
(``body``, ``params``, ``query``) is a plain attribute: the adapter
converts their keys in place before a controller runs, and the router
narrows ``path``/``base_url`` while a mounted chain is executing.
"""

import json
from typing import Any
from urllib.parse import parse_qs

from relay._internal.asgi import Receive, Scope
from relay.errors import BadRequest
from relay.http.headers import Headers
from relay.http.query import parse_query
from relay.state import SharedState


class Request:
    """An inbound HTTP request as seen by the handler chain.

    Attributes:
        method: Upper-case HTTP method.
        path: Path relative to the router currently running the request.
        base_url: Mount prefix stripped from ``path``.
        original_url: Full request path plus query string, never rewritten.
        headers: Case-insensitive request headers.
        body: Parsed body: JSON value, form ``dict``, raw ``bytes``, or
            ``{}`` when the body is empty.
        params: Path parameters captured by the matching route pattern.
        query: Query parameters (see :func:`relay.http.query.parse_query`).
        shared_state: The request's :class:`SharedState`.
    """

    __slots__ = (
        "base_url",
        "body",
        "client",
        "headers",
        "http_version",
        "method",
        "original_url",
        "params",
        "path",
        "query",
        "raw_body",
        "shared_state",
    )

    def __init__(
        self,
        method: str,
        path: str,
        *,
        headers: Headers | None = None,
        query: dict[str, Any] | None = None,
        raw_body: bytes = b"",
        original_url: str | None = None,
        http_version: str = "1.1",
        client: tuple[str, int] | None = None,
    ) -> None:
        self.method = method.upper()
        self.path = path or "/"
        self.base_url = ""
        self.original_url = original_url or self.path
        self.headers = headers or Headers()
        self.query: dict[str, Any] = query if query is not None else {}
        self.params: dict[str, Any] = {}
        self.raw_body = raw_body
        self.body: Any = {}
        self.http_version = http_version
        self.client = client
        self.shared_state = SharedState()

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.original_url}>"

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    def parse_body(self) -> None:
        """Decode ``raw_body`` into ``body`` according to Content-Type.

        JSON and URL-encoded forms are parsed; anything else is kept as
        bytes. Raises ``BadRequest`` for malformed JSON.
        """
        if not self.raw_body:
            self.body = {}
            return
        content_type = (self.content_type or "").lower()
        if "json" in content_type:
            try:
                self.body = json.loads(self.raw_body)
            except ValueError:
                raise BadRequest("Malformed JSON body") from None
        elif "application/x-www-form-urlencoded" in content_type:
            parsed = parse_qs(self.raw_body.decode("utf-8"), keep_blank_values=True)
            self.body = {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}
        else:
            self.body = self.raw_body

    @classmethod
    async def from_asgi(cls, scope: Scope, receive: Receive) -> "Request":
        """Build a Request from an ASGI scope, reading the whole body."""
        chunks: list[bytes] = []
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunk = message.get("body", b"")
            if chunk:
                chunks.append(chunk)
            if not message.get("more_body", False):
                break

        query_string: bytes = scope.get("query_string", b"")
        path: str = scope["path"]
        original_url = f"{path}?{query_string.decode('latin-1')}" if query_string else path
        client = scope.get("client")
        return cls(
            scope["method"],
            path,
            headers=Headers(tuple(tuple(pair) for pair in scope.get("headers", ()))),
            query=parse_query(query_string),
            raw_body=b"".join(chunks),
            original_url=original_url,
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
        )
