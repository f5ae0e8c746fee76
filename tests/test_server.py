"""End-to-end tests against a listening mock server."""

import socket
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from cannedhttp import MockServer, MockServerConfig, Server, ServerStateError


class TestLifecycle:
    """Open, close and URL behavior."""

    def test_url_before_open(self, server):
        with pytest.raises(ServerStateError):
            server.url()

    def test_open_binds_ephemeral_port(self, live_server):
        url = live_server.url()
        assert url.startswith("http://127.0.0.1:")
        assert int(url.rsplit(":", 1)[1]) > 0
        assert live_server.is_open

    def test_open_twice(self, live_server):
        with pytest.raises(ServerStateError):
            live_server.open()

    def test_close_is_idempotent(self, server):
        """Closing a never-opened or already-closed server is a no-op."""
        server.close()
        server.open()
        server.close()
        server.close()
        assert not server.is_open
        with pytest.raises(ServerStateError):
            server.url()

    def test_bind_failure_propagates(self, live_server):
        port = int(live_server.url().rsplit(":", 1)[1])
        other = MockServer(config=MockServerConfig(port=port))

        with pytest.raises(OSError):
            other.open()
        assert not other.is_open

    def test_reopen_keeps_captured_requests(self, server):
        server.open()
        requests.get(f"{server.url()}/items")
        server.close()
        server.open()
        try:
            assert len(server.get_get_requests("/items?")) == 1
        finally:
            server.close()

    def test_context_manager(self):
        with MockServer() as server:
            assert isinstance(server, MockServer)
            server.set_get_response_body("/ping?", '"pong"')
            response = requests.get(f"{server.url()}/ping")
            assert response.json() == "pong"
        assert not server.is_open

    def test_is_a_server(self, server):
        assert isinstance(server, Server)


class TestOverHttp:
    """Behavior observed by a real HTTP client."""

    def test_get_round_trip(self, live_server):
        live_server.set_get_response_body("/users?id=42", '{"name": "Ada"}')

        response = requests.get(f"{live_server.url()}/users?id=42")

        assert response.status_code == 200
        assert response.headers["Content-Type"] == "application/json"
        assert response.text == '{"name": "Ada"}'

    def test_get_miss(self, live_server):
        response = requests.get(f"{live_server.url()}/users?id=7")

        assert response.status_code == 404
        assert response.text == "No httpGETResponse for '/users?id=7'"

    def test_two_gets_recorded_in_order(self, live_server):
        url = f"{live_server.url()}/users?id=1"
        requests.get(url, headers={"X-Seq": "1"})
        requests.get(url, headers={"X-Seq": "2"})

        captured = live_server.get_get_requests("/users?id=1")

        assert len(captured) == 2
        assert [c.header("X-Seq") for c in captured] == ["1", "2"]
        assert captured[0].remote_addr == "127.0.0.1"

    def test_reset_drops_responses(self, live_server):
        live_server.set_get_response_body("/users?", "[]")
        live_server.reset()

        response = requests.get(f"{live_server.url()}/users")

        assert response.status_code == 404

    def test_post_upload(self, live_server):
        live_server.set_post_response_body("/upload? hello", '{"ok": true}')

        response = requests.post(
            f"{live_server.url()}/upload",
            files={"file": ("hello.txt", b"hello")},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        [captured] = live_server.get_post_requests("/upload? hello")
        assert captured.file_content == b"hello"

    def test_post_without_file(self, live_server):
        response = requests.post(
            f"{live_server.url()}/upload",
            files={"other": ("other.txt", b"hello")},
        )

        assert response.status_code == 500

    def test_unsupported_method(self, live_server):
        response = requests.put(f"{live_server.url()}/users", data="x")
        assert response.status_code == 405

    def test_concurrent_requests_all_recorded(self, live_server):
        live_server.set_get_response_body("/load?", "{}")
        url = f"{live_server.url()}/load"

        with ThreadPoolExecutor(max_workers=8) as pool:
            statuses = list(pool.map(lambda _: requests.get(url).status_code, range(20)))

        assert statuses == [200] * 20
        assert len(live_server.get_get_requests("/load?")) == 20

    def test_raw_utf8_query_is_keyed_as_text(self, live_server):
        """Non-ASCII bytes in the request line are keyed as the text sent."""
        live_server.set_get_response_body("/q?n=é", "{}")
        host, port = live_server.url()[len("http://"):].rsplit(":", 1)

        with socket.create_connection((host, int(port)), timeout=5) as conn:
            conn.sendall("GET /q?n=é HTTP/1.0\r\nHost: localhost\r\n\r\n".encode("utf-8"))
            reply = b""
            while True:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                reply += chunk

        assert reply.split(b"\r\n", 1)[0].endswith(b"200 OK")
        assert len(live_server.get_get_requests("/q?n=é")) == 1
