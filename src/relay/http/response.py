"""Buffered response writer.

Handlers build the response through a small chainable API::

    response.set({"X-Request-Id": rid}).status(201).json({"id": 7})

Nothing goes on the wire until the chain has finished; the transport
then sends the buffered status, headers and body in one go. A response
can be finished exactly once.
"""

import dataclasses
import datetime
import decimal
import json
import uuid
from collections.abc import Mapping
from typing import Any

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


def _json_default(value: Any) -> Any:
    """Fallback encoder for values the json module does not know."""
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (uuid.UUID, decimal.Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


class Response:
    """A mutable, buffered HTTP response."""

    __slots__ = ("_headers", "_settings", "body", "content_type", "finished", "status_code")

    def __init__(self, settings: Mapping[str, Any] | None = None) -> None:
        self.status_code = 200
        self.body = b""
        self.content_type: str | None = None
        self.finished = False
        self._headers: dict[str, tuple[str, str]] = {}
        self._settings = settings or {}

    def __repr__(self) -> str:
        state = "finished" if self.finished else "open"
        return f"<Response {self.status_code} {state}>"

    # -- Headers --

    def set(self, headers: Mapping[str, str] | str, value: str | None = None) -> "Response":
        """Set one header (``set(name, value)``) or several (``set(mapping)``).

        Names are case-insensitive; a later call replaces an earlier value.
        """
        self._check_open()
        items = headers.items() if isinstance(headers, Mapping) else [(headers, value)]
        for name, item in items:
            if item is None:
                msg = f"Header {name!r} needs a value"
                raise ValueError(msg)
            if name.lower() == "content-type":
                self.content_type = str(item)
            else:
                self._headers[name.lower()] = (name, str(item))
        return self

    def get(self, name: str) -> str | None:
        """Return a header previously set on this response."""
        if name.lower() == "content-type":
            return self.content_type
        entry = self._headers.get(name.lower())
        return entry[1] if entry else None

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        """Headers set so far, excluding Content-Type."""
        return tuple(self._headers.values())

    # -- Status and body --

    def status(self, code: int) -> "Response":
        """Set the status code."""
        self._check_open()
        self.status_code = int(code)
        return self

    def json(self, body: Any) -> "Response":
        """Finish the response with a JSON body.

        ``None`` produces an empty body, the same as sending nothing.
        """
        if body is None:
            payload = b""
        else:
            payload = json.dumps(
                body,
                default=_json_default,
                indent=self._settings.get("json_indent"),
                sort_keys=bool(self._settings.get("json_sort_keys", False)),
                ensure_ascii=False,
            ).encode("utf-8")
        if self.content_type is None:
            self.content_type = JSON_CONTENT_TYPE
        return self._finish(payload)

    def send(self, body: str | bytes | Mapping[str, Any] | list[Any] | None = None) -> "Response":
        """Finish the response with *body*.

        Mappings and lists are sent as JSON, strings as UTF-8 text, bytes
        untouched.
        """
        if isinstance(body, (Mapping, list)):
            return self.json(body)
        if isinstance(body, str):
            if self.content_type is None:
                self.content_type = TEXT_CONTENT_TYPE
            return self._finish(body.encode("utf-8"))
        if body is not None and self.content_type is None:
            self.content_type = "application/octet-stream"
        return self._finish(body or b"")

    def end(self) -> "Response":
        """Finish the response without a body."""
        return self._finish(b"")

    # -- Internal --

    def _finish(self, payload: bytes) -> "Response":
        self._check_open()
        self.body = payload
        self.finished = True
        return self

    def _check_open(self) -> None:
        if self.finished:
            msg = "Cannot modify a response after it has been sent."
            raise RuntimeError(msg)
