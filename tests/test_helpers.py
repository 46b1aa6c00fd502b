"""Tests for relay.helpers and relay.protocols: HttpResponse factories."""

import logging

import pytest

from relay.helpers import (
    bad_request,
    conflict,
    created,
    forbidden,
    no_content,
    not_found,
    ok,
    server_error,
    unauthorized,
)
from relay.protocols import HttpResponse


class TestFactories:
    def test_success(self) -> None:
        assert ok({"a": 1}) == HttpResponse(200, {"a": 1})
        assert created({"id": 1}, {"Location": "/x/1"}) == HttpResponse(201, {"id": 1}, {"Location": "/x/1"})
        assert no_content() == HttpResponse(204)

    @pytest.mark.parametrize(
        ("factory", "status", "message"),
        [
            (bad_request, 400, "Bad Request"),
            (unauthorized, 401, "Unauthorized"),
            (forbidden, 403, "Forbidden"),
            (not_found, 404, "Not Found"),
            (conflict, 409, "Conflict"),
        ],
    )
    def test_client_errors(self, factory, status: int, message: str) -> None:
        assert factory() == HttpResponse(status, {"error": message})
        assert factory("custom").body == {"error": "custom"}

    def test_server_error_hides_message_and_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="relay.helpers"):
            response = server_error(ValueError("secret"))

        assert response == HttpResponse(500, {"error": "Internal Server Error"})
        assert caplog.records[0].exc_info is not None


class TestCoerce:
    def test_passthrough(self) -> None:
        response = ok()
        assert HttpResponse.coerce(response) is response

    def test_mapping(self) -> None:
        assert HttpResponse.coerce({"status_code": "201", "body": [1]}) == HttpResponse(201, [1])

    @pytest.mark.parametrize("value", [None, "ok", {"status": 200}, 200])
    def test_rejects_other_values(self, value: object) -> None:
        with pytest.raises(TypeError):
            HttpResponse.coerce(value)  # type: ignore[arg-type]
