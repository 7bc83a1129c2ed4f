import io
import socket

import pytest

from wifidog.acl import Acl, AclAction
from wifidog.request import Method, Request
from wifidog.server import ContentKind, HttpServer


@pytest.fixture
def server():
    with HttpServer("127.0.0.1", 0) as srv:
        yield srv


def make_request(path, client_addr=""):
    ours, peer = socket.socketpair()
    peer.settimeout(5)
    req = Request(ours, client_addr)
    req.path = path
    req.method = Method.GET
    return req, peer


def finish(req, peer):
    req.close()
    chunks = []
    while True:
        data = peer.recv(65536)
        if not data:
            break
        chunks.append(data)
    peer.close()
    return b"".join(chunks)


def test_find_content_dir_creates_and_finds(server):
    created = server.find_content_dir("/a/b", True)
    assert server.find_content_dir("a//b/", False) is created
    assert created.name == "b"
    assert server.find_content_dir("/a/c", False) is None
    assert server.find_content_dir("/", False) is server.content


def test_file_content_paths(server):
    server.set_file_base("/srv")
    rel = server.add_file_content("/", "index.html", True, None, "index.html")
    absolute = server.add_file_content("/", "other", False, None, "/etc/other")
    assert rel.path == "/srv/index.html"
    assert absolute.path == "/etc/other"
    assert rel.kind is ContentKind.FILE
    assert server.content.entries[0] is absolute


def test_static_content_expands_variables(server):
    server.add_static_content("/", "hello", False, None, "Hi $name")
    req, peer = make_request("/hello")
    req.add_variable("name", "Bob")
    server.process_request(req)
    data = finish(req, peer)
    assert data.startswith(b"HTTP/1.0 200 Output Follows\n")
    assert data.endswith(b"Hi Bob")


def test_missing_path_sends_stock_404(server):
    log = io.StringIO()
    server.set_error_log(log)
    req, peer = make_request("/missing", "127.0.0.1")
    server.process_request(req)
    data = finish(req, peer)
    assert b"404 Not Found" in data
    assert b"The request URL was not found!" in data
    assert "File does not exist: /missing" in log.getvalue()
    assert "[client 127.0.0.1]" in log.getvalue()


def test_custom_not_found_handler(server):
    seen = []
    server.set_not_found_handler(lambda srv, r: seen.append((srv, r.path)))
    req, peer = make_request("/nothing")
    server.process_request(req)
    data = finish(req, peer)
    assert seen == [(server, "/nothing")]
    assert b"404" not in data


def test_function_content_called(server):
    calls = []

    def handler(srv, r):
        calls.append(srv)
        r.output("done")

    server.add_function_content("/api", "run", False, None, handler)
    req, peer = make_request("/api/run")
    server.process_request(req)
    data = finish(req, peer)
    assert calls == [server]
    assert data.endswith(b"done")


def test_preload_failure_stops_processing(server):
    calls = []
    server.add_function_content("/", "x", False, lambda srv: -1, lambda s, r: calls.append(r))
    req, peer = make_request("/x")
    server.process_request(req)
    data = finish(req, peer)
    assert calls == []
    assert data == b""


def test_index_entry_serves_empty_name(server):
    server.add_static_content("/docs", "index", True, None, "welcome")
    req, peer = make_request("/docs/")
    server.process_request(req)
    data = finish(req, peer)
    assert data.endswith(b"welcome")


def test_wildcard_function_matches_any_name(server):
    names = []
    server.add_function_wildcard_content("/any", None, lambda s, r: names.append(r.path))
    req, peer = make_request("/any/thing")
    server.process_request(req)
    finish(req, peer)
    assert names == ["/any/thing"]


def test_wildcard_file_content(server, tmp_path):
    (tmp_path / "pic.png").write_bytes(b"\x89PN")
    server.add_wildcard_content("/img", None, str(tmp_path))
    req, peer = make_request("/img/pic.png")
    server.process_request(req)
    data = finish(req, peer)
    assert b"Content-Type: image/png\n" in data
    assert b"Content-Length: 3\n" in data
    assert data.endswith(b"\x89PN")
    assert req.response_length == 3


def test_wildcard_missing_file_gives_404(server, tmp_path):
    server.add_wildcard_content("/img", None, str(tmp_path))
    req, peer = make_request("/img/none.gif")
    server.process_request(req)
    data = finish(req, peer)
    assert b"404 Not Found" in data


def test_check_acl_deny_and_permit(server):
    acl = Acl().add("10.0.0.0/8", AclAction.PERMIT)
    req, peer = make_request("/", "10.1.2.3")
    assert server.check_acl(req, acl) is AclAction.PERMIT
    assert finish(req, peer) == b""

    req, peer = make_request("/", "192.168.1.1")
    assert server.check_acl(req, acl) is AclAction.DENY
    data = finish(req, peer)
    assert b"403 Permission Denied" in data


def test_access_log_line(server):
    log = io.StringIO()
    server.set_access_log(log)
    server.add_static_content("/", "hello", False, None, "hi")
    req, peer = make_request("/hello", "127.0.0.1")
    server.process_request(req)
    finish(req, peer)
    assert req.response_length == 2
    line = log.getvalue()
    head, _, rest = line.partition("] ")
    assert head.startswith("127.0.0.1 - - [")
    assert rest == 'GET "/hello" 200 2\n'


def test_error_log_without_client(server):
    log = io.StringIO()
    server.set_error_log(log)
    server.write_error_log(None, "error", "something broke")
    line = log.getvalue()
    assert line.startswith("[")
    assert line.split("] ", 1)[1] == "[error] something broke\n"


def test_error_log_with_client(server):
    log = io.StringIO()
    server.set_error_log(log)
    req, peer = make_request("/", "10.0.0.9")
    server.write_error_log(req, "notice", "hello")
    finish(req, peer)
    assert log.getvalue().split("] ", 1)[1] == "[notice] [client 10.0.0.9] hello\n"


def test_get_connection_times_out(server):
    assert server.get_connection(0.05) is None


def test_get_connection_accepts_client(server):
    client = socket.create_connection(("127.0.0.1", server.port), timeout=5)
    try:
        req = server.get_connection(5)
        assert req.client_addr == "127.0.0.1"
        req.close()
    finally:
        client.close()


def test_get_connection_default_acl_denies(server):
    server.set_default_acl(Acl().add("10.0.0.0/8", AclAction.PERMIT))
    client = socket.create_connection(("127.0.0.1", server.port), timeout=5)
    try:
        assert server.get_connection(5) is None
        data = client.recv(65536)
        assert b"403 Permission Denied" in data
    finally:
        client.close()