"""Query string parsing.

The transport exposes ``request.query`` as a plain, mutable ``dict`` so
the adapter can rewrite its keys. A key sent once maps to a string, a
key sent several times maps to the list of its values.
"""

from typing import Any
from urllib.parse import parse_qs


def parse_query(query_string: bytes | str) -> dict[str, Any]:
    """Parse a raw query string into a ``dict``.

    Examples::

        parse_query(b"q=hello&page=2")   -> {"q": "hello", "page": "2"}
        parse_query(b"tag=a&tag=b")      -> {"tag": ["a", "b"]}
        parse_query(b"flag")             -> {"flag": ""}
    """
    if isinstance(query_string, bytes):
        query_string = query_string.decode("utf-8", errors="replace")
    parsed = parse_qs(query_string, keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}
