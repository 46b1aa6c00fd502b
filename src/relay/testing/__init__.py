"""Test utilities for relay servers.

::

    from relay.testing import TestClient
"""

from relay.testing.client import TestClient, TestResponse

__all__ = ["TestClient", "TestResponse"]
