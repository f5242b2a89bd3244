import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest import mock

import pytest

from webtestkit import httphelper


class _EchoHandler(BaseHTTPRequestHandler):
    def _answer(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        status = 200
        if self.path.startswith("/status/"):
            status = int(self.path.rsplit("/", 1)[1])
        payload = json.dumps(
            {
                "method": self.command,
                "path": self.path,
                "body": body.decode(),
                "content_type": self.headers.get("Content-Type"),
                "accept": self.headers.get("Accept"),
                "other": self.headers.get("X-Other"),
            }
        ).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("X-Echo", "yes")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _answer
    do_POST = _answer
    do_DELETE = _answer

    def log_message(self, *args):
        pass


@pytest.fixture
def server(monkeypatch):
    for var in ("http_proxy", "HTTP_PROXY", "https_proxy", "HTTPS_PROXY", "all_proxy", "ALL_PROXY"):
        monkeypatch.delenv(var, raising=False)
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _EchoHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def test_fqdn():
    result = httphelper.fqdn()
    name = socket.gethostname().lower()
    assert result.startswith(name) or result == "localhost"


def test_fqdn_lookup_failure_gives_localhost():
    with mock.patch("socket.gethostname", return_value="box"), mock.patch(
        "socket.getaddrinfo", side_effect=socket.gaierror("no")
    ):
        assert httphelper.fqdn() == "localhost"


def test_fqdn_prefers_name_starting_with_hostname():
    infos = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.5", 0))]
    with mock.patch("socket.gethostname", return_value="box"), mock.patch(
        "socket.getaddrinfo", return_value=infos
    ), mock.patch(
        "socket.gethostbyaddr",
        return_value=("box", ["box.example.com.", "other.example.org"], ["10.0.0.5"]),
    ):
        assert httphelper.fqdn() == "box.example.com"


def test_fqdn_falls_back_to_longest_name():
    infos = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.5", 0))]
    with mock.patch("socket.gethostname", return_value="box"), mock.patch(
        "socket.getaddrinfo", return_value=infos
    ), mock.patch(
        "socket.gethostbyaddr",
        return_value=("a.example.net", ["bb.example.net."], ["10.0.0.5"]),
    ):
        assert httphelper.fqdn() == "bb.example.net."


def test_fqdn_reverse_lookup_failure_gives_localhost():
    infos = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.5", 0))]
    with mock.patch("socket.gethostname", return_value="box"), mock.patch(
        "socket.getaddrinfo", return_value=infos
    ), mock.patch("socket.gethostbyaddr", side_effect=socket.herror("no")):
        assert httphelper.fqdn() == "localhost"


@pytest.mark.parametrize(
    "base, path, prefix, expected",
    [
        ("http://localhost:4444/wd/hub/", "/wd/session/1", "wd", "http://localhost:4444/session/1"),
        ("http://localhost:4444/wd/hub/", "/wd/session", "/wd/", "http://localhost:4444/wd/hub/session"),
        ("http://localhost:4444", "/x/status", "/x", "http://localhost:4444/status"),
    ],
)
def test_construct_url(base, path, prefix, expected):
    assert httphelper.construct_url(base, path, prefix) == expected


def test_construct_url_wrong_prefix():
    with pytest.raises(ValueError):
        httphelper.construct_url("http://localhost:4444/", "/other/session", "/wd")


def test_set_default_response_headers():
    headers = {"Access-Control-Allow-Headers": ["X-Custom"], "cache-control": ["max-age=5"]}
    httphelper.set_default_response_headers(headers)
    assert headers["Access-Control-Allow-Origin"] == ["*"]
    assert headers["Access-Control-Allow-Methods"] == [
        "CONNECT,DELETE,GET,HEAD,OPTIONS,PATCH,POST,PUT,TRACE"
    ]
    assert headers["Access-Control-Allow-Headers"] == ["X-Custom", "Accept,Content-Type"]
    assert headers["Cache-Control"] == ["no-cache"]
    assert "cache-control" not in headers


def test_forward_passes_selected_parts(server):
    resp = httphelper.forward(
        server,
        "/wd",
        "POST",
        "/wd/echo/abc",
        b"hello",
        {"Content-Type": "text/plain", "Accept": ["application/json"], "X-Other": "no"},
    )
    assert resp.status == 200
    echoed = json.loads(resp.body)
    assert echoed["method"] == "POST"
    assert echoed["path"] == "/echo/abc"
    assert echoed["body"] == "hello"
    assert echoed["content_type"] == "text/plain"
    assert echoed["accept"] == "application/json"
    assert echoed["other"] is None
    assert resp.headers["X-Echo"] == ["yes"]
    assert resp.headers["Access-Control-Allow-Origin"] == ["*"]
    assert resp.headers["Cache-Control"] == ["no-cache"]


def test_forward_keeps_error_status(server):
    resp = httphelper.forward(server, "/wd", "GET", "/wd/status/404")
    assert resp.status == 404
    assert json.loads(resp.body)["path"] == "/status/404"


def test_forward_rejects_wrong_prefix(server):
    with pytest.raises(ValueError):
        httphelper.forward(server, "/wd", "GET", "/other/thing")


def test_get(server):
    with httphelper.get(server + "/echo/x") as resp:
        assert resp.status == 200
        echoed = json.loads(resp.read())
    assert echoed["method"] == "GET"
    assert echoed["path"] == "/echo/x"


def test_get_error_status(server):
    with httphelper.get(server + "/status/500") as resp:
        assert resp.status == 500