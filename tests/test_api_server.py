"""Tests for reviewit.api.server (HTTP layer over ApiApp)."""

import http.client
import json
import threading
from typing import Iterator

import pytest

from reviewit.api.handlers import ApiApp
from reviewit.api.server import make_server
from reviewit.config import AppConfig
from reviewit.services.integration import IntegrationOrchestrator
from reviewit.services.store import Store


@pytest.fixture
def server_port(store: Store, orchestrator: IntegrationOrchestrator) -> Iterator[int]:
    """API server on a free local port, shut down after the test."""
    server = make_server(ApiApp(AppConfig(), store, orchestrator), "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server.server_address[1]
    finally:
        server.shutdown()
        server.server_close()


def _request(port: int, method: str, path: str, body: bytes = b"", headers: dict | None = None):
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.putrequest(method, path)
        for name, value in (headers or {}).items():
            conn.putheader(name, value)
        conn.endheaders()
        if body:
            conn.send(body)
        resp = conn.getresponse()
        return resp.status, json.loads(resp.read())
    finally:
        conn.close()


class TestApiServer:
    """Requests go through ApiHandler; malformed input gets a JSON 400."""

    def test_health(self, server_port: int) -> None:
        assert _request(server_port, "GET", "/health") == (200, {"status": "ok", "service": "reviewit"})

    def test_invalid_json_body(self, server_port: int) -> None:
        status, body = _request(
            server_port, "POST", "/api/projects/1/merge_requests", b"{nope", {"Content-Length": "5"}
        )
        assert (status, body) == (400, {"error": "Invalid JSON body"})

    def test_malformed_content_length(self, server_port: int) -> None:
        """A Content-Length that is not a number is a bad request, not a dropped connection."""
        status, body = _request(server_port, "POST", "/api/projects/1/merge_requests", headers={"Content-Length": "abc"})
        assert (status, body) == (400, {"error": "Invalid Content-Length"})

    def test_query_string_authenticates(self, server_port: int) -> None:
        status, body = _request(server_port, "GET", "/api/projects/1/merge_requests?api_token=nope&cli_version=x")
        assert (status, body) == (401, {"error": "Sorry, invalid token."})
