"""End-to-end tests over a real socket: uvicorn binding + httpx client."""

import socket
import time

import httpx
import pytest

from relay.config import ServerConfig
from relay.errors import BindError
from relay.helpers import created, not_found
from relay.server import HttpServer
from relay.transport.app import Transport
from relay.transport.binding import UvicornBinding


class GetUser:
    async def handle(self, request, state, next):
        if request.params["userId"] == "missing":
            return not_found()
        return {"status_code": 404, "body": {"userId": request.params["userId"]}}


class CreateUser:
    async def handle(self, request, state, next):
        return created({"userId": 7, "firstName": request.body["firstName"]}, {"Location": "/api/users/7"})


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def server():
    server = HttpServer(ServerConfig(base_url="/api"))
    group = server.route("users")
    group.get("/{user_id}", GetUser())
    group.post("/", CreateUser())
    yield server
    server.close()


class TestServeOverSocket:
    def test_listen_on_ephemeral_port(self, server: HttpServer) -> None:
        called: list[bool] = []
        server.listen(0, lambda: called.append(True))

        host, port = server.address()
        assert port != 0
        assert called == [True]

        with httpx.Client(base_url=f"http://{host}:{port}") as client:
            response = client.get("/api/users/abc")
            assert response.status_code == 404
            assert response.json() == {"user_id": "abc"}

            response = client.get("/api/users/missing")
            assert response.json() == {"error": "Not Found"}

            response = client.post("/api/users", json={"first_name": "Ada"})
            assert response.status_code == 201
            assert response.headers["location"] == "/api/users/7"
            assert response.json() == {"user_id": 7, "first_name": "Ada"}

            assert client.get("/elsewhere").status_code == 404

    def test_refresh_rebinds_same_port(self, server: HttpServer) -> None:
        server.listen(_free_port())
        first = server.address()

        server.route("health").get("/", lambda request, response, next, state: response.send("ok"))
        server.refresh()

        assert server.address() == first
        host, port = first
        response = httpx.get(f"http://{host}:{port}/api/health")
        assert response.text == "ok"

    def test_refresh_from_request_handler(self, server: HttpServer) -> None:
        def trigger(request, response, next, state):
            server.refresh()
            response.status(202).send("refreshing")

        server.route("admin").post("/refresh", trigger)
        server.listen(_free_port())
        host, port = server.address()
        server.route("health").get("/", lambda request, response, next, state: response.send("ok"))

        response = httpx.post(f"http://{host}:{port}/api/admin/refresh")
        assert response.status_code == 202

        deadline = time.monotonic() + 5
        status = None
        while status != 200 and time.monotonic() < deadline:
            try:
                status = httpx.get(f"http://{host}:{port}/api/health").status_code
            except httpx.TransportError:
                status = None
            if status != 200:
                time.sleep(0.05)
        assert status == 200
        assert server.address() == (host, port)

    def test_close_stops_serving(self, server: HttpServer) -> None:
        server.listen(0)
        host, port = server.address()
        server.close()

        with pytest.raises(httpx.ConnectError):
            httpx.get(f"http://{host}:{port}/api/users/abc")


class TestUvicornBinding:
    def test_port_in_use_raises_bind_error(self) -> None:
        first = UvicornBinding(Transport(), host="127.0.0.1", port=0)
        try:
            _, port = first.address
            with pytest.raises(BindError):
                UvicornBinding(Transport(), host="127.0.0.1", port=port, timeout=2.0)
        finally:
            first.close()
        assert not first.running
