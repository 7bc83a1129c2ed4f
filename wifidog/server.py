"""A small embedded HTTP server: a tree of content, access control and logging."""

from __future__ import annotations

import os
import re
import select
import socket
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, TextIO

from wifidog.acl import Acl, AclAction
from wifidog.httputil import format_time_string
from wifidog.request import LEVEL_ERROR, MAX_LEN, MAX_URL, Request

VERSION = "1.3"
VENDOR = "Hughes Technologies Pty Ltd"

DEFAULT_PORT = 80
LISTEN_BACKLOG = 128

_LEADING_INT = re.compile(r"\s*[+-]?\d+")
_SUFFIX_TYPES = {
    ".gif": "image/gif",
    ".jpg": "image/jpeg",
    ".xbm": "image/xbm",
    ".png": "image/png",
}

Preload = Callable[["HttpServer"], int]
Handler = Callable[["HttpServer", Request], Any]


class ContentKind(IntEnum):
    """How a content entry produces its response."""

    FILE = 1
    FUNCTION = 2
    STATIC = 4
    WILDCARD = 5
    FUNCTION_WILDCARD = 6


@dataclass(eq=False)
class ContentEntry:
    """Something the server can answer with, registered under a directory."""

    name: str | None
    kind: ContentKind
    index: bool = False
    preload: Preload | None = None
    function: Handler | None = None
    data: str | None = None
    path: str | None = None


@dataclass(eq=False)
class ContentDir:
    """A directory of the content tree; newest children and entries come first."""

    name: str
    children: list[ContentDir] = field(default_factory=list)
    entries: list[ContentEntry] = field(default_factory=list)


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


class HttpServer:
    """A listening socket and the content it serves."""

    def __init__(self, host: str | None = None, port: int = DEFAULT_PORT) -> None:
        self.host = host
        self.file_base = ""
        self.content = ContentDir("")
        self.default_acl: Acl | None = None
        self.not_found_handler: Handler | None = None
        self.access_log: TextIO | None = None
        self.error_log: TextIO | None = None
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("" if host is None else host, port))
            sock.listen(LISTEN_BACKLOG)
        except OSError:
            sock.close()
            raise
        self.sock = sock
        self.port = sock.getsockname()[1]
        self.start_time = int(time.time())

    def __enter__(self) -> HttpServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop listening."""
        self.sock.close()

    def get_connection(self, timeout: float | None = None) -> Request | None:
        """Wait for a client and return its request.

        Returns None when ``timeout`` seconds pass with no client, or when
        the default ACL refuses the client (it is sent a 403 first).
        """
        while True:
            ready, _, _ = select.select([self.sock], [], [], timeout)
            if ready:
                break
            if timeout is not None:
                return None
        conn, address = self.sock.accept()
        request = Request(conn, address[0] if address else "")
        if self.default_acl is not None:
            if self.check_acl(request, self.default_acl) is AclAction.DENY:
                request.close()
                return None
        return request

    def set_file_base(self, path: str) -> None:
        """Set the directory that relative file paths are taken from."""
        self.file_base = path[: MAX_URL - 1]

    def find_content_dir(self, path: str, create: bool) -> ContentDir | None:
        """Return the directory for ``path``, creating missing parts if ``create``."""
        current = self.content
        for part in path[: MAX_URL - 1].split("/"):
            if not part:
                continue
            child = next((c for c in current.children if c.name == part), None)
            if child is None:
                if not create:
                    return None
                child = ContentDir(part)
                current.children.insert(0, child)
            current = child
        return current

    def _resolve_path(self, path: str) -> str:
        if path.startswith("/"):
            return path
        return f"{self.file_base}/{path}"[: MAX_URL - 1]

    def _register(self, directory: str, entry: ContentEntry) -> ContentEntry:
        target = self.find_content_dir(directory, True)
        assert target is not None
        target.entries.insert(0, entry)
        return entry

    def add_file_content(
        self, directory: str, name: str, index: bool, preload: Preload | None, path: str
    ) -> ContentEntry:
        """Serve the file at ``path`` as ``directory/name``."""
        return self._register(
            directory,
            ContentEntry(name, ContentKind.FILE, bool(index), preload, path=self._resolve_path(path)),
        )

    def add_wildcard_content(
        self, directory: str, preload: Preload | None, path: str
    ) -> ContentEntry:
        """Serve any name in ``directory`` from the files under ``path``."""
        return self._register(
            directory,
            ContentEntry(None, ContentKind.WILDCARD, False, preload, path=self._resolve_path(path)),
        )

    def add_function_content(
        self, directory: str, name: str, index: bool, preload: Preload | None, function: Handler
    ) -> ContentEntry:
        """Answer ``directory/name`` by calling ``function(server, request)``."""
        return self._register(
            directory,
            ContentEntry(name, ContentKind.FUNCTION, bool(index), preload, function=function),
        )

    def add_function_wildcard_content(
        self, directory: str, preload: Preload | None, function: Handler
    ) -> ContentEntry:
        """Answer any name in ``directory`` by calling ``function``."""
        return self._register(
            directory,
            ContentEntry(None, ContentKind.FUNCTION_WILDCARD, False, preload, function=function),
        )

    def add_static_content(
        self, directory: str, name: str, index: bool, preload: Preload | None, data: str
    ) -> ContentEntry:
        """Answer ``directory/name`` with ``data``, expanding ``$variables``."""
        return self._register(
            directory,
            ContentEntry(name, ContentKind.STATIC, bool(index), preload, data=data),
        )

    def set_not_found_handler(self, function: Handler | None) -> None:
        """Call ``function(server, request)`` instead of sending the stock 404."""
        self.not_found_handler = function

    def set_access_log(self, stream: TextIO | None) -> None:
        self.access_log = stream

    def set_error_log(self, stream: TextIO | None) -> None:
        self.error_log = stream

    def set_default_acl(self, acl: Acl | None) -> None:
        """Check every new connection against ``acl``."""
        self.default_acl = acl

    def check_acl(self, request: Request, acl: Acl) -> AclAction:
        """Return the action ``acl`` gives the client; a denied client gets a 403."""
        action = acl.match(request.client_addr)
        if action is AclAction.DENY:
            self._send_403(request)
            self.write_error_log(request, LEVEL_ERROR, "Access denied by ACL")
        return action

    # Dispatch

    @staticmethod
    def _find_content_entry(
        request: Request, directory: ContentDir, entry_name: str
    ) -> ContentEntry | None:
        for entry in directory.entries:
            if entry.kind in (ContentKind.WILDCARD, ContentKind.FUNCTION_WILDCARD):
                break
            if entry_name == "" and entry.index:
                break
            if entry.name == entry_name:
                break
        else:
            return None
        request.content = entry
        return entry

    def process_request(self, request: Request) -> None:
        """Find the content for the request's path and send it."""
        request.response_length = 0
        dir_name = request.path[: MAX_URL - 1]
        slash = dir_name.rfind("/")
        if slash < 0:
            print(f"Invalid request path '{dir_name}'")
            return
        entry_name = dir_name[slash + 1 :]
        dir_name = dir_name[:slash] if slash != 0 else "/"

        directory = self.find_content_dir(dir_name, False)
        entry = None if directory is None else self._find_content_entry(request, directory, entry_name)
        if entry is None:
            self._send_404(request)
            self.write_access_log(request)
            return
        if entry.preload is not None and entry.preload(self) < 0:
            self.write_access_log(request)
            return

        if entry.kind in (ContentKind.FUNCTION, ContentKind.FUNCTION_WILDCARD):
            assert entry.function is not None
            entry.function(self, request)
        elif entry.kind is ContentKind.STATIC:
            self._send_static(request, entry.data or "")
        elif entry.kind is ContentKind.FILE:
            self._send_file(request, entry.path or "")
        elif entry.kind is ContentKind.WILDCARD:
            self._send_file(request, f"{entry.path}/{entry_name}"[: MAX_URL - 1])
        self.write_access_log(request)

    # Canned responses

    @staticmethod
    def _send_304(request: Request) -> None:
        request.set_response("304 Not Modified\n")
        request.send_headers()

    @staticmethod
    def _send_403(request: Request) -> None:
        request.set_response("403 Permission Denied\n")
        request.send_headers()
        request.send_text("<HTML><HEAD><TITLE>403 Permission Denied</TITLE></HEAD>\n")
        request.send_text("<BODY><H1>Access to the request URL was denied!</H1>\n")

    def _send_404(self, request: Request) -> None:
        message = f"File does not exist: {request.path}\n"[: MAX_URL - 1]
        self.write_error_log(request, LEVEL_ERROR, message)
        if self.not_found_handler is not None:
            self.not_found_handler(self, request)
            return
        request.set_response("404 Not Found\n")
        request.send_headers()
        request.send_text("<HTML><HEAD><TITLE>404 Not Found</TITLE></HEAD>\n")
        request.send_text("<BODY><H1>The request URL was not found!</H1>\n")
        request.send_text("</BODY></HTML>\n")

    @staticmethod
    def _not_modified(request: Request, mod_time: float) -> bool:
        return format_time_string(mod_time) == request.if_modified

    def _send_static(self, request: Request, data: str) -> None:
        if self._not_modified(request, self.start_time):
            self._send_304(request)
        request.send_headers(len(data), self.start_time)
        request.output(data)

    def _send_file(self, request: Request, path: str) -> None:
        _, suffix = os.path.splitext(path)
        content_type = _SUFFIX_TYPES.get(suffix.lower())
        if content_type is not None:
            request.set_content_type(content_type)
        try:
            info = os.stat(path)
        except OSError:
            self._send_404(request)
            return
        if self._not_modified(request, info.st_mtime):
            self._send_304(request)
            return
        request.send_headers(info.st_size, info.st_mtime)
        self._cat_file(request, path)

    @staticmethod
    def _cat_file(request: Request, path: str) -> None:
        try:
            handle = open(path, "rb")
        except OSError:
            return
        with handle:
            while chunk := handle.read(MAX_LEN):
                request.response_length += len(chunk)
                try:
                    request.sock.sendall(chunk)
                except OSError:
                    return

    # Logging

    def write_access_log(self, request: Request) -> None:
        """Append a common-log-style line for the request, if logging is on."""
        if self.access_log is None:
            return
        date = time.strftime("%d/%b/%Y:%H:%M:%S %Z", time.localtime())
        self.access_log.write(
            f'{request.client_addr} - - [{date}] {request.method_name()} "{request.path}" '
            f"{_atoi(request.response)} {request.response_length}\n"
        )

    def write_error_log(self, request: Request | None, level: str, message: str) -> None:
        """Append an error line, naming the client when there is one."""
        if self.error_log is None:
            return
        date = time.strftime("%a %b %d %H:%M:%S %Y", time.localtime())
        if request is not None and request.client_addr:
            self.error_log.write(f"[{date}] [{level}] [client {request.client_addr}] {message}\n")
        else:
            self.error_log.write(f"[{date}] [{level}] {message}\n")