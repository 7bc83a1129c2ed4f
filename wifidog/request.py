"""One client connection: reading the request line and headers, and writing the response."""

from __future__ import annotations

import select
import socket
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from wifidog.httputil import decode_base64, format_time_string, parse_query, sanitise_url

MAX_LEN = 10240
MAX_URL = 1024
MAX_HEADERS = 1024
MAX_AUTH = 128
IP_ADDR_LEN = 17
READ_BUF_LEN = 4096
MAX_VAR_NAME = 80
AUTH_DECODE_LIMIT = 100

LEVEL_NOTICE = "notice"
LEVEL_ERROR = "error"

METHOD_ERROR = "\n<B>ERROR : Method Not Implemented</B>\n\n"
DEFAULT_HEADERS = "Server: Hughes Technologies Embedded Server\n"
DEFAULT_CONTENT_TYPE = "text/html"
DEFAULT_RESPONSE = "200 Output Follows\n"

ErrorLog = Callable[["Request", str, str], None]


class Method(IntEnum):
    """Request methods the server understands."""

    GET = 1
    POST = 2


class RequestError(Exception):
    """The request could not be accepted."""


@dataclass
class Variable:
    """A named request variable with one or more values, in arrival order."""

    name: str
    values: list[str] = field(default_factory=list)

    @property
    def value(self) -> str:
        """The first value."""
        return self.values[0]


def _is_word_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


class Request:
    """A client connection and the state of its request and response."""

    read_timeout: float = 10.0

    def __init__(self, sock: socket.socket, client_addr: str = "") -> None:
        self.sock = sock
        self.client_addr = client_addr[: IP_ADDR_LEN - 1]
        self.method: Method | None = None
        self.content_length = 0
        self.auth_length = 0
        self.path = ""
        self.query = ""
        self.host = ""
        self.if_modified = ""
        self.auth_user = ""
        self.auth_password = ""
        self.variables: list[Variable] = []
        self.response = DEFAULT_RESPONSE
        self.headers = DEFAULT_HEADERS
        self.content_type = DEFAULT_CONTENT_TYPE
        self.headers_sent = False
        self.response_length = 0
        self.content: Any = None
        self._buffer = b""

    def __enter__(self) -> Request:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def method_name(self) -> str:
        """Name of the request method, or a description of an invalid one."""
        if self.method is Method.GET:
            return "GET"
        if self.method is Method.POST:
            return "POST"
        return f"Invalid method '{int(self.method or 0)}'"

    # Low-level I/O

    def _write(self, text: str) -> int:
        data = text.encode("utf-8")
        try:
            self.sock.sendall(data)
        except OSError:
            pass
        return len(data)

    def _fill(self) -> bool:
        try:
            ready, _, _ = select.select([self.sock], [], [], self.read_timeout)
            if not ready:
                return False
            data = self.sock.recv(READ_BUF_LEN)
        except OSError:
            return False
        if not data:
            return False
        self._buffer = data
        return True

    def _read_byte(self) -> int | None:
        if not self._buffer and not self._fill():
            return None
        byte = self._buffer[0]
        self._buffer = self._buffer[1:]
        return byte

    def _read_line(self) -> str | None:
        """Next line without CR; None when the connection ends first.

        A byte outside ASCII ends the line, and lines are cut at MAX_LEN.
        """
        out = bytearray()
        while len(out) < MAX_LEN:
            byte = self._read_byte()
            if byte is None:
                return None
            if byte == 0x0A or byte >= 0x80:
                break
            if byte == 0x0D:
                continue
            out.append(byte)
        return out.decode("ascii")

    # Reading the request

    def read(self, error_log: ErrorLog | None = None) -> None:
        """Read the request line and headers and store any query variables.

        Raises :class:`RequestError` when the method is not GET or POST.
        """
        count = 0
        while (line := self._read_line()) is not None:
            count += 1
            if count == 1:
                self._read_request_line(line, error_log)
                continue
            if line == "":
                break
            self._read_header(line)

        if "?" in self.path:
            self.path, query = self.path.split("?", 1)
            self.query = query[: MAX_URL - 1]
            for name, value in parse_query(query):
                self.add_variable(name, value)

    def _read_request_line(self, line: str, error_log: ErrorLog | None) -> None:
        word_end = 0
        while word_end < len(line) and line[word_end].isascii() and line[word_end].isalpha():
            word_end += 1
        word = line[:word_end]
        upper = word.upper()
        if upper == "GET":
            self.method = Method.GET
        elif upper == "POST":
            self.method = Method.POST
        if self.method is None:
            self._write(METHOD_ERROR)
            self._write(word)
            if error_log is not None:
                error_log(self, LEVEL_ERROR, "Invalid method received")
            raise RequestError(f"Invalid method {word!r}")
        rest = line[word_end + 1 :].lstrip(" ")
        path = rest.split(" ", 1)[0]
        self.path = sanitise_url(path[: MAX_URL - 1])

    def _read_header(self, line: str) -> None:
        lowered = line.lower()
        if lowered.startswith("authorization: "):
            credentials = line[line.index(":") + 2 :]
            if credentials.startswith("Basic "):
                encoded = credentials[credentials.index(" ") + 1 :]
                decoded = decode_base64(encoded, AUTH_DECODE_LIMIT).split(b"\0", 1)[0]
                self.auth_length = len(decoded)
                text = decoded.decode("latin-1")
                if ":" in text:
                    text, secret_part = text.split(":", 1)
                    self.auth_password = secret_part[: MAX_AUTH - 1]
                self.auth_user = text[: MAX_AUTH - 1]
        if lowered.startswith("host: "):
            self.host = line[line.index(":") + 2 :][: MAX_URL - 1]

    # Variables

    def add_variable(self, name: str, value: str) -> None:
        """Add a value under ``name``; repeated names collect several values."""
        name = name.lstrip(" \t")
        existing = self.get_variable(name)
        if existing is not None:
            existing.values.append(value)
        else:
            self.variables.append(Variable(name, [value]))

    def get_variable(self, name: str) -> Variable | None:
        """The variable called ``name``, or None."""
        return next((var for var in self.variables if var.name == name), None)

    def get_variable_by_prefix(self, prefix: str | None) -> Variable | None:
        """First variable whose name starts with ``prefix``; None prefix gives the first."""
        if prefix is None:
            return self.variables[0] if self.variables else None
        return next((var for var in self.variables if var.name.startswith(prefix)), None)

    def get_variable_by_prefixed_name(self, prefix: str | None, name: str) -> Variable | None:
        """The variable called ``prefix + name``; None prefix gives the first variable."""
        if prefix is None:
            return self.variables[0] if self.variables else None
        return next(
            (
                var
                for var in self.variables
                if var.name.startswith(prefix) and var.name[len(prefix) :] == name
            ),
            None,
        )

    def iter_variables_by_prefix(self, prefix: str) -> Iterator[Variable]:
        """Every variable whose name starts with ``prefix``, in order."""
        return (var for var in list(self.variables) if var.name.startswith(prefix))

    def clear_variables(self) -> None:
        """Forget all variables."""
        self.variables.clear()

    def dump_variables(self) -> None:
        """Print every variable and its values."""
        for var in self.variables:
            print(f"Variable '{var.name}'")
            for value in var.values:
                print(f"\t= '{value}'")

    # Response

    def set_response(self, message: str) -> None:
        """Set the status text sent after the protocol version."""
        self.response = message[: MAX_URL - 1]

    def set_content_type(self, content_type: str) -> None:
        self.content_type = content_type

    def add_header(self, message: str) -> None:
        """Append a header line while the header block has room."""
        room = MAX_HEADERS - 2 - len(self.headers)
        if room > 0:
            self.headers += message[:room]
            if not self.headers.endswith("\n"):
                self.headers += "\n"

    def set_cookie(self, name: str, value: str) -> None:
        self.add_header(f"Set-Cookie: {name}={value}; path=/;"[: MAX_URL - 1])

    def send_headers(self, content_length: int = 0, mod_time: float = 0) -> None:
        """Send the status line and headers, once."""
        if self.headers_sent:
            return
        self.headers_sent = True
        parts = [
            "HTTP/1.0 ",
            self.response,
            self.headers,
            "Date: ",
            format_time_string(0),
            "\n",
            "Connection: close\n",
            "Content-Type: ",
            self.content_type,
            "\n",
        ]
        if content_length > 0:
            parts += [
                "Content-Length: ",
                str(content_length),
                "\n",
                "Last-Modified: ",
                format_time_string(mod_time),
                "\n",
            ]
        parts.append("\n")
        self._write("".join(parts))

    def send_text(self, text: str) -> None:
        """Write ``text`` as part of the body."""
        self.response_length += self._write(text)

    def output(self, message: str) -> None:
        """Write ``message`` with ``$name`` replaced by request variables."""
        parts: list[str] = []
        count = 0
        pos = 0
        end = len(message)
        while pos < end and count < MAX_LEN:
            char = message[pos]
            if char == "$":
                stop = pos + 1
                while stop < end and stop - pos - 1 < MAX_VAR_NAME and _is_word_char(message[stop]):
                    stop += 1
                name = message[pos + 1 : stop]
                var = self.get_variable(name)
                piece = var.value if var is not None else "$" + name
                parts.append(piece)
                count += len(piece)
                pos = stop
                continue
            parts.append(char)
            count += 1
            pos += 1
        body = "".join(parts)
        if not self.headers_sent:
            self.send_headers()
        self.response_length += self._write(body)

    def printf(self, fmt: str, *args: Any) -> None:
        """Write ``fmt % args`` as part of the body."""
        if not self.headers_sent:
            self.send_headers()
        text = (fmt % args if args else fmt)[: MAX_LEN - 1]
        self.response_length += self._write(text)

    def _ask_for_credentials(self, realm: str) -> None:
        self.set_response("401 Please Authenticate")
        self.add_header(f'WWW-Authenticate: Basic realm="{realm}"\n'[:254])
        self.output("\n")

    def authenticate(self, realm: str) -> None:
        """Ask for Basic credentials unless the client sent some."""
        if self.auth_length == 0:
            self._ask_for_credentials(realm)

    def force_authenticate(self, realm: str) -> None:
        """Ask for Basic credentials regardless of what the client sent."""
        self._ask_for_credentials(realm)

    def close(self) -> None:
        """Drop the variables and close the connection."""
        self.clear_variables()
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()