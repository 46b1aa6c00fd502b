"""Payload key casing at the HTTP boundary.

Clients speak one key convention on the wire (``user_id``), application
code speaks another (``userId``). ``PayloadCasing`` converts the keys of
JSON-like payloads between the two. Only mapping keys are rewritten;
values, including strings, are left alone. Nested mappings and sequences
are converted recursively.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

# Lower/digit followed by upper, or an acronym followed by a capitalised word
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def _split_underscores(key: str) -> tuple[str, str, str]:
    """Split *key* into (leading underscores, core, trailing underscores)."""
    core = key.strip("_")
    if not core:
        return key, "", ""
    start = key.index(core)
    return key[:start], core, key[start + len(core) :]


def snake_to_camel(key: str) -> str:
    """Convert ``snake_case`` to ``camelCase``.

    Leading and trailing underscores are preserved (``_id`` stays ``_id``).
    """
    prefix, core, suffix = _split_underscores(key)
    if not core:
        return key
    head, *rest = core.split("_")
    return prefix + head + "".join(part[:1].upper() + part[1:] for part in rest if part) + suffix


def camel_to_snake(key: str) -> str:
    """Convert ``camelCase`` (or ``PascalCase``) to ``snake_case``.

    Acronyms are kept together: ``userID`` → ``user_id``,
    ``HTTPServer`` → ``http_server``.
    """
    prefix, core, suffix = _split_underscores(key)
    if not core:
        return key
    return prefix + _CAMEL_BOUNDARY.sub("_", core).lower() + suffix


def convert_keys(value: Any, convert: Callable[[str], str]) -> Any:
    """Return a copy of *value* with every string mapping key converted.

    Non-string keys are kept as they are. Lists and tuples are walked and
    returned as lists; anything else is returned unchanged.
    """
    if isinstance(value, Mapping):
        return {
            (convert(key) if isinstance(key, str) else key): convert_keys(item, convert)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [convert_keys(item, convert) for item in value]
    return value


@dataclass(frozen=True, slots=True)
class PayloadCasing:
    """A bidirectional key converter.

    ``to_internal`` is applied to request body, params and query before a
    Controller/Middleware runs; ``to_external`` to the response body it
    returns.
    """

    internal_key: Callable[[str], str]
    external_key: Callable[[str], str]

    def to_internal(self, value: Any) -> Any:
        return convert_keys(value, self.internal_key)

    def to_external(self, value: Any) -> Any:
        return convert_keys(value, self.external_key)


def _identity(key: str) -> str:
    return key


# snake_case on the wire, camelCase inside handlers
SNAKE_TO_CAMEL = PayloadCasing(internal_key=snake_to_camel, external_key=camel_to_snake)

# camelCase on the wire, snake_case inside handlers
CAMEL_TO_SNAKE = PayloadCasing(internal_key=camel_to_snake, external_key=snake_to_camel)

# No conversion
IDENTITY = PayloadCasing(internal_key=_identity, external_key=_identity)
