"""Shared fixtures: a temporary document root, a handler bound to it and a live server."""

import socket
import threading
from typing import Dict, NamedTuple

import pytest

from webserver.config import ServerConfig
from webserver.connection import ConnectionHandler
from webserver.server import HTTPServer

INDEX_HTML = b"<h1>Hi</h1>\n"
APP_JS = b"console.log('app');\n"
STYLE_CSS = b"body { color: black; }\n"
NOTES_TXT = b"plain text\n"


class RawResponse(NamedTuple):
    status_code: int
    reason: str
    headers: Dict[str, str]
    body: bytes


def parse_raw_response(data: bytes) -> RawResponse:
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    _, code, reason = lines[0].split(" ", 2)
    headers = {}
    for line in lines[1:]:
        key, value = line.split(":", 1)
        headers[key.strip()] = value.strip()
    return RawResponse(int(code), reason, headers, body)


def read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def web_root(tmp_path):
    root = tmp_path / "webroot"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "app.js").write_bytes(APP_JS)
    (root / "notes.txt").write_bytes(NOTES_TXT)
    (root / "README").write_bytes(NOTES_TXT)
    assets = root / "assets"
    assets.mkdir()
    (assets / "style.css").write_bytes(STYLE_CSS)
    return root


@pytest.fixture
def config(web_root):
    return ServerConfig.create(
        str(web_root),
        host="127.0.0.1",
        port=0,
        max_threads=4,
        socket_timeout=5.0,
        log_file=None,
    )


@pytest.fixture
def handler(config):
    return ConnectionHandler(config)


@pytest.fixture
def exchange(handler):
    """Push raw request bytes through the handler over a socket pair."""

    def _exchange(raw: bytes) -> bytes:
        server_side, client_side = socket.socketpair()
        try:
            client_side.sendall(raw)
            client_side.shutdown(socket.SHUT_WR)
            handler.handle(server_side, ("127.0.0.1", 50000))
            return read_all(client_side)
        finally:
            client_side.close()

    return _exchange


@pytest.fixture
def live_server(config):
    server = HTTPServer(config)
    server.bind()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.stop()
    thread.join(5)


@pytest.fixture
def request_live(live_server):
    """Send raw bytes to the live server and return the parsed response."""

    def _request(raw: bytes) -> RawResponse:
        with socket.create_connection(live_server.server_address, timeout=5) as sock:
            sock.sendall(raw)
            return parse_raw_response(read_all(sock))

    return _request
