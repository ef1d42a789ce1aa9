"""Threaded HTTP server for the JSON API and health check."""

import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from reviewit.api.handlers import ApiApp

LOG = logging.getLogger("reviewit.api.server")


class ApiHandler(BaseHTTPRequestHandler):
    """Handle GET /health and /api/... requests."""

    app: ApiApp

    def _params(self) -> tuple[str, dict[str, Any]]:
        """Path plus merged query string and JSON body parameters."""
        parts = urlsplit(self.path)
        params: dict[str, Any] = {k: v[-1] for k, v in parse_qs(parts.query, keep_blank_values=True).items()}
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length) if length else b""
        if body:
            data = json.loads(body.decode("utf-8"))
            if isinstance(data, dict):
                params.update(data)
        return parts.path.rstrip("/") or "/", params

    def _send(self, status: int, payload: dict[str, Any]) -> None:
        raw = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        self.end_headers()
        self.wfile.write(raw)

    def _dispatch(self, method: str) -> None:
        try:
            path, params = self._params()
        except (json.JSONDecodeError, UnicodeDecodeError):
            LOG.warning("Invalid JSON body for %s %s", method, self.path)
            self._send(400, {"error": "Invalid JSON body"})
            return
        except ValueError:
            LOG.warning("Invalid Content-Length for %s %s", method, self.path)
            self._send(400, {"error": "Invalid Content-Length"})
            return
        if method == "GET" and path in ("/", "/health"):
            self._send(200, {"status": "ok", "service": "reviewit"})
            return
        status, payload = self.app.handle(method, path, params)
        LOG.info("%s %s -> %s", method, path, status)
        self._send(status, payload)

    def do_GET(self) -> None:
        self._dispatch("GET")

    def do_POST(self) -> None:
        self._dispatch("POST")

    def do_PUT(self) -> None:
        self._dispatch("PUT")

    def do_PATCH(self) -> None:
        self._dispatch("PATCH")

    def log_message(self, format: str, *args: Any) -> None:
        LOG.debug(format, *args)


def make_server(app: ApiApp, host: str, port: int) -> ThreadingHTTPServer:
    ApiHandler.app = app
    return ThreadingHTTPServer((host, port), ApiHandler)


def run_api_server(app: ApiApp) -> None:
    """Run HTTP server for the API and health check."""
    host = app.config.server.host
    port = app.config.server.port
    server = make_server(app, host, port)
    LOG.info("API server listening on %s:%s", host, port)
    server.serve_forever()
