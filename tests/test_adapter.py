"""Tests for relay.adapter: raw and capability handlers on the transport."""

from typing import Any

import pytest

from relay.adapter import MiddlewareAdapter, is_capability_handler
from relay.casing import IDENTITY
from relay.errors import ConfigurationError
from relay.helpers import not_found, ok
from relay.http.headers import Headers
from relay.http.request import Request
from relay.http.response import Response
from relay.protocols import Controller, HttpResponse


async def _never(error: BaseException | None = None) -> None:
    raise AssertionError("next() should not have been called")


def _json_request(body: bytes = b"", **kwargs: Any) -> Request:
    headers = Headers(((b"content-type", b"application/json"),))
    request = Request("POST", "/", headers=headers, raw_body=body, **kwargs)
    request.parse_body()
    return request


class GetUser:
    async def handle(self, request: Request, state: Any, next: Any) -> HttpResponse:
        return HttpResponse(404, {"userId": "abc"})


class TestIsCapabilityHandler:
    def test_instance_with_handle(self) -> None:
        assert is_capability_handler(GetUser())
        assert isinstance(GetUser(), Controller)

    def test_class_is_not_capability(self) -> None:
        assert not is_capability_handler(GetUser)

    def test_plain_function(self) -> None:
        assert not is_capability_handler(lambda request, response, next, state: None)

    def test_non_callable_handle(self) -> None:
        class Weird:
            handle = "nope"

        assert not is_capability_handler(Weird())


class TestCapabilityHandler:
    async def test_response_body_uses_external_casing(self) -> None:
        adapted = MiddlewareAdapter().adapt(GetUser())
        response = Response()

        await adapted(_json_request(), response, _never)

        assert response.status_code == 404
        assert response.body == b'{"user_id": "abc"}'

    async def test_request_converted_to_internal_casing(self) -> None:
        seen: dict[str, Any] = {}

        class Capture:
            def handle(self, request: Request, state: Any, next: Any) -> HttpResponse:
                seen.update(body=request.body, params=request.params, query=request.query)
                return ok()

        request = _json_request(b'{"first_name": "Ada", "tags": [{"tag_id": 1}]}', query={"page_size": "10"})
        request.params = {"user_id": 7}

        await MiddlewareAdapter().adapt(Capture())(request, Response(), _never)

        assert seen == {
            "body": {"firstName": "Ada", "tags": [{"tagId": 1}]},
            "params": {"userId": 7},
            "query": {"pageSize": "10"},
        }

    async def test_headers_applied(self) -> None:
        class WithHeaders:
            async def handle(self, request: Request, state: Any, next: Any) -> dict[str, Any]:
                return {"status_code": 201, "body": {"id": 1}, "headers": {"Location": "/items/1"}}

        response = Response()
        await MiddlewareAdapter().adapt(WithHeaders())(_json_request(), response, _never)

        assert response.status_code == 201
        assert response.get("location") == "/items/1"

    async def test_none_result_leaves_response_alone(self) -> None:
        calls: list[str] = []

        class Passthrough:
            async def handle(self, request: Request, state: Any, next: Any) -> None:
                calls.append("handle")
                await next()

        async def next_() -> None:
            calls.append("next")

        response = Response()
        await MiddlewareAdapter().adapt(Passthrough())(_json_request(), response, next_)

        assert calls == ["handle", "next"]
        assert not response.finished

    async def test_state_tuple_threaded(self) -> None:
        class Authenticate:
            async def handle(self, request: Request, state: Any, next: Any) -> None:
                _, set_state = state
                set_state({"user": "ada"})

        class WhoAmI:
            async def handle(self, request: Request, state: Any, next: Any) -> HttpResponse:
                view, _ = state
                return ok({"user": view["user"]})

        adapter = MiddlewareAdapter()
        request, response = _json_request(), Response()
        await adapter.adapt(Authenticate())(request, response, _never)
        await adapter.adapt(WhoAmI())(request, response, _never)

        assert response.body == b'{"user": "ada"}'

    async def test_exceptions_propagate(self) -> None:
        class Broken:
            async def handle(self, request: Request, state: Any, next: Any) -> None:
                raise LookupError("missing")

        with pytest.raises(LookupError):
            await MiddlewareAdapter().adapt(Broken())(_json_request(), Response(), _never)

    async def test_identity_casing(self) -> None:
        class Echo:
            def handle(self, request: Request, state: Any, next: Any) -> HttpResponse:
                return ok(request.body)

        response = Response()
        await MiddlewareAdapter(IDENTITY).adapt(Echo())(_json_request(b'{"user_id": 1}'), response, _never)
        assert response.body == b'{"user_id": 1}'

    async def test_invalid_result(self) -> None:
        class BadResult:
            def handle(self, request: Request, state: Any, next: Any) -> str:
                return "oops"

        with pytest.raises(TypeError, match="status_code"):
            await MiddlewareAdapter().adapt(BadResult())(_json_request(), Response(), _never)


class TestRawHandler:
    async def test_receives_state_and_no_casing(self) -> None:
        seen: dict[str, Any] = {}

        def raw(request: Request, response: Response, next: Any, state: Any) -> None:
            view, set_state = state
            set_state({"seen": True})
            seen.update(body=request.body, state=dict(view))
            response.json(request.body)

        response = Response()
        await MiddlewareAdapter().adapt(raw)(_json_request(b'{"user_id": 1}'), response, _never)

        assert seen == {"body": {"user_id": 1}, "state": {"seen": True}}
        assert response.body == b'{"user_id": 1}'

    async def test_sync_raw_handler_returning_next(self) -> None:
        calls: list[str] = []

        def passthrough(request: Request, response: Response, next: Any, state: Any) -> Any:
            return next()

        async def next_() -> None:
            calls.append("next")

        await MiddlewareAdapter().adapt(passthrough)(_json_request(), Response(), next_)
        assert calls == ["next"]

    def test_wrapper_keeps_name(self) -> None:
        def load_user(request: Request, response: Response, next: Any, state: Any) -> None:
            pass

        adapted = MiddlewareAdapter().adapt(load_user)
        assert adapted.__name__ == "load_user"
        assert adapted.__wrapped__ is load_user  # type: ignore[attr-defined]


class TestAdaptErrors:
    def test_rejects_non_callable(self) -> None:
        with pytest.raises(ConfigurationError, match="Cannot use"):
            MiddlewareAdapter().adapt(42)

    def test_adapt_all_preserves_order(self) -> None:
        def a(*args: Any) -> None: ...

        def b(*args: Any) -> None: ...

        adapted = MiddlewareAdapter().adapt_all([a, b, not_found])
        assert [h.__name__ for h in adapted] == ["a", "b", "not_found"]
