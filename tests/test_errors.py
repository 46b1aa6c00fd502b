"""Tests for relay.errors and relay.config."""

import dataclasses

import pytest

from relay.casing import SNAKE_TO_CAMEL
from relay.config import ServerConfig
from relay.errors import BadRequest, BindError, ConfigurationError, HTTPError, NotFound, RelayError


class TestErrorHierarchy:
    def test_all_relay_errors(self) -> None:
        for exc_type in (ConfigurationError, BindError, HTTPError, BadRequest, NotFound):
            assert issubclass(exc_type, RelayError)

    def test_http_error_str(self) -> None:
        assert str(HTTPError(418, "teapot")) == "418: teapot"
        assert str(HTTPError(503)) == "503"

    def test_defaults(self) -> None:
        assert NotFound().status == 404
        assert NotFound().detail == "Not Found"
        assert BadRequest("bad json").detail == "bad json"
        assert BadRequest().status == 400

    def test_http_error_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            NotFound().status = 500  # type: ignore[misc]

    def test_raise_and_catch(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            raise NotFound("gone")
        assert exc_info.value.status == 404


class TestServerConfig:
    def test_defaults(self) -> None:
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.base_url == ""
        assert config.casing is SNAKE_TO_CAMEL

    def test_frozen(self) -> None:
        config = ServerConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 9000  # type: ignore[misc]

    def test_replace(self) -> None:
        config = dataclasses.replace(ServerConfig(), port=3000, base_url="/api")
        assert (config.port, config.base_url) == (3000, "/api")
