"""Local callback server for the AniList implicit grant.

AniList redirects the browser to ``/callback`` with the access token in the
URL fragment. Fragments never reach the server, so the callback page runs a
small script that reads ``access_token`` from ``window.location.hash`` and
POSTs it back to ``/token``, where it is handed to the waiting login flow.
"""

from __future__ import annotations

import json
import logging
import socketserver
import sys
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlparse

from .channel import TokenChannel
from .errors import CallbackServerError

CALLBACK_PORT = 19331
CALLBACK_PATH = "/callback"
TOKEN_PATH = "/token"
SHUTDOWN_TIMEOUT = 5.0

_MAX_BODY = 8192

logger = logging.getLogger(__name__)


CALLBACK_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Hisame Auth</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            display: flex;
            justify-content: center;
            align-items: center;
            height: 100vh;
            margin: 0;
            background: #0b1622;
        }
        .container {
            background: #151f2e;
            color: #c9d7e3;
            padding: 40px 60px;
            border-radius: 12px;
            box-shadow: 0 10px 40px rgba(0,0,0,0.4);
            text-align: center;
        }
    </style>
    <script>
        window.onload = function() {
            const fragment = window.location.hash.substring(1);
            const params = new URLSearchParams(fragment);
            const token = params.get("access_token");
            const container = document.getElementById("status");

            if (token) {
                fetch("/token", {
                    method: "POST",
                    headers: { "Content-Type": "application/json" },
                    body: JSON.stringify({ token: token })
                }).then(response => response.json())
                .then(data => {
                    container.innerHTML = "<h1>Token fetched successfully. You can close this window.</h1>";
                }).catch((error) => {
                    container.innerHTML = "<h1>Error retrieving token: " + error + "</h1>";
                });
            } else {
                container.innerHTML = "<h1>No token found in the URL fragment</h1>";
            }
        };
    </script>
</head>
<body>
    <div class="container" id="status">
        <h1>Processing OAuth Token...</h1>
    </div>
</body>
</html>
"""


class CallbackHandler(BaseHTTPRequestHandler):
    """Serves ``GET /callback`` and accepts ``POST /token``."""

    server: _CallbackHTTPServer

    def log_message(self, format, *args):
        """Route access logs through logging instead of stderr."""
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self):
        if urlparse(self.path).path != CALLBACK_PATH:
            self._send_text(404, "Not found")
            return
        self._send_callback_page()

    def do_POST(self):
        if urlparse(self.path).path != TOKEN_PATH:
            self._send_text(404, "Not found")
            return

        logger.debug("Received post to %s endpoint", TOKEN_PATH)
        try:
            length = int(self.headers.get("Content-Length", 0))
        except (ValueError, TypeError):
            self._send_text(400, "Invalid request")
            return

        if length < 0:
            self._send_text(400, "Invalid request")
            return

        if length > _MAX_BODY:
            self._send_text(413, "Request body too large")
            return

        body = self.rfile.read(length)
        try:
            data = json.loads(body)
        except ValueError:
            self._send_text(400, "Invalid request")
            return

        if data is None:
            data = {}
        token = data.get("token", "") if isinstance(data, dict) else None
        if not isinstance(token, str):
            self._send_text(400, "Invalid request")
            return

        if not self.server.channel.put(token):
            logger.warning("Token already delivered or login finished; ignoring")

        self._send_json(200, {"status": "token stored"})

    def _send_callback_page(self):
        self._send(200, "text/html", CALLBACK_PAGE.encode())

    def _send_json(self, status: int, payload: dict):
        self._send(status, "application/json", json.dumps(payload).encode())

    def _send_text(self, status: int, message: str):
        self._send(status, "text/plain; charset=utf-8", f"{message}\n".encode())

    def _send(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class _CallbackHTTPServer(ThreadingHTTPServer):
    # Windows lets two sockets bind the same port with SO_REUSEADDR.
    allow_reuse_address = sys.platform != "win32"
    allow_reuse_port = False
    daemon_threads = True

    def __init__(self, address: tuple[str, int], channel: TokenChannel):
        self.channel = channel
        super().__init__(address, CallbackHandler)

    def server_bind(self):
        # Skip HTTPServer's reverse DNS lookup of the bind address.
        socketserver.TCPServer.server_bind(self)
        host, port = self.server_address[:2]
        self.server_name = host or "localhost"
        self.server_port = port


class CallbackServer:
    """Temporary HTTP server that receives the token from the browser.

    Usage:
        channel = TokenChannel()
        server = CallbackServer(channel)
        server.start()
        token = channel.get(cancel=cancel_event)
        server.stop()

    Or as a context manager:
        with CallbackServer(channel) as server:
            token = channel.get(cancel=cancel_event)
    """

    def __init__(self, channel: TokenChannel, port: int = CALLBACK_PORT, host: str = ""):
        self.channel = channel
        self.port = port
        self.host = host
        self.serve_error: BaseException | None = None
        self._httpd: _CallbackHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def callback_url(self) -> str:
        return f"http://localhost:{self.port}{CALLBACK_PATH}"

    @property
    def running(self) -> bool:
        return self._httpd is not None

    def start(self) -> None:
        """Bind the port and serve on a background thread.

        Raises:
            CallbackServerError: If the port cannot be bound
        """
        logger.info("Starting auth callback server.")
        with self._lock:
            if self._httpd is not None:
                raise CallbackServerError("Callback server already running", port=self.port)
            try:
                httpd = _CallbackHTTPServer((self.host, self.port), self.channel)
            except OSError as e:
                logger.error("Could not listen on port %s: %s", self.port, e)
                raise CallbackServerError(
                    f"Could not listen on port {self.port}: {e}", port=self.port
                ) from e

            self.serve_error = None
            self._httpd = httpd
            self._thread = threading.Thread(
                target=self._serve, args=(httpd,), name="hisame-callback-server", daemon=True
            )
            self._thread.start()

    def _serve(self, httpd: _CallbackHTTPServer) -> None:
        try:
            httpd.serve_forever(poll_interval=0.1)
        except Exception as e:
            self.serve_error = e
            logger.exception("Callback server stopped unexpectedly")

    def stop(self, timeout: float = SHUTDOWN_TIMEOUT) -> bool:
        """Shut the server down and release the port.

        Waits up to ``timeout`` seconds for the serve loop to exit. An overrun
        is logged; the listening socket is closed either way.

        Returns:
            False if the server was not running
        """
        with self._lock:
            httpd, thread = self._httpd, self._thread
            self._httpd = None
            self._thread = None

        if httpd is None:
            return False

        logger.debug("Stopping callback server..")
        stopper = threading.Thread(target=httpd.shutdown, name="hisame-callback-shutdown", daemon=True)
        stopper.start()
        stopper.join(timeout)
        if stopper.is_alive():
            logger.error("Server shutdown failed: still running after %.1fs", timeout)
        httpd.server_close()

        if thread is not None:
            thread.join(timeout=1)
        if self.serve_error is None:
            logger.debug("Callback server shutdown successfully")
        return True

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()
