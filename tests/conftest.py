import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlparse

import pytest


class _TestHandler(BaseHTTPRequestHandler):
    def log_message(self, format, *args):
        pass

    def do_GET(self):
        self._dispatch()

    def do_POST(self):
        self._dispatch()

    def do_PUT(self):
        self._dispatch()

    def do_DELETE(self):
        self._dispatch()

    def _dispatch(self):
        path = urlparse(self.path).path
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""

        if path == "/ok":
            self._send(200, b"Everything is OK")
        elif path == "/missing":
            self._send(404, b"OK, but nothing here")
        elif path == "/empty":
            self._send(200, b"")
        elif path == "/echo":
            payload = {
                "method": self.command,
                "body": body.decode("utf-8"),
                "content_type": self.headers.get("Content-Type"),
                "user_agent": self.headers.get("User-Agent"),
                "authorization": self.headers.get("Authorization"),
                "cookie": self.headers.get("Cookie"),
            }
            self._send(200, json.dumps(payload).encode("utf-8"), content_type="application/json")
        elif path == "/set-cookie":
            self._send(200, b"cookie set", extra_headers=[("Set-Cookie", "session=abc123; Path=/")])
        elif path.startswith("/redirect/"):
            remaining = int(path.rsplit("/", 1)[1])
            target = f"/redirect/{remaining - 1}" if remaining > 1 else "/ok"
            self._send(302, b"", extra_headers=[("Location", target)])
        elif path == "/utf8":
            self._send(200, "café OK".encode("utf-8"), content_type="text/html")
        elif path == "/trickle":
            self._trickle(pieces=4, size=1024, delay=0.3)
        elif path == "/slow":
            time.sleep(1.5)
            self._send(200, b"finally OK")
        else:
            self._send(404, b"not found")

    def _trickle(self, pieces, size, delay):
        try:
            self.send_response(200)
            self.send_header("Content-Type", "application/octet-stream")
            self.send_header("Content-Length", str(pieces * size))
            self.end_headers()
            for index in range(pieces):
                if index:
                    time.sleep(delay)
                self.wfile.write(b"x" * size)
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            pass

    def _send(self, status, body, content_type="text/plain; charset=utf-8", extra_headers=()):
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in extra_headers:
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)
        except (BrokenPipeError, ConnectionResetError):
            pass


@pytest.fixture
def http_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _TestHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def closed_port_url():
    # Bind then release a port so nothing is listening on it.
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/"
