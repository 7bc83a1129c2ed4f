"""URL escaping, query-string and Basic-auth decoding, path sanitising and HTTP dates."""

from __future__ import annotations

import time

_HEX = "0123456789ABCDEF"

# Bytes passed through unescaped: space, * - . / digits @ A-Z _ a-z.
_ACCEPTABLE = frozenset(
    b" *-./@_0123456789"
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    b"abcdefghijklmnopqrstuvwxyz"
)

_BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_VALUES = {c: i for i, c in enumerate(_BASE64_ALPHABET)}
_BASE64_INVALID = 64

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def escape(text: str) -> str:
    """Percent-encode every UTF-8 byte of ``text`` outside the safe set."""
    parts: list[str] = []
    for byte in text.encode("utf-8"):
        if byte in _ACCEPTABLE:
            parts.append(chr(byte))
        else:
            parts.append("%" + _HEX[byte >> 4] + _HEX[byte & 15])
    return "".join(parts)


def url_encode(text: str) -> str:
    """Escape ``text`` for a URL, writing spaces as '+'."""
    return escape(text).replace(" ", "+")


def from_hex(char: str) -> int:
    """Value of one hexadecimal digit; lower-case letters are accepted too."""
    code = ord(char)
    if "0" <= char <= "9":
        return code - ord("0")
    if "A" <= char <= "F":
        return code - ord("A") + 10
    return code - ord("a") + 10


def unescape(text: str | None) -> str:
    """Decode %XX escapes and '+' for space; None gives an empty string."""
    if text is None:
        return ""
    data = text.encode("utf-8")
    out = bytearray()
    pos = 0
    end = len(data)
    while pos < end:
        byte = data[pos]
        if byte == ord("%"):
            pos += 1
            if pos >= end:
                out.append(byte)
                break
            value = from_hex(chr(data[pos])) * 16
            pos += 1
            if pos < end:
                value += from_hex(chr(data[pos]))
                pos += 1
            out.append(value & 0xFF)
        elif byte == ord("+"):
            out.append(ord(" "))
            pos += 1
        else:
            out.append(byte)
            pos += 1
    return out.decode("utf-8", errors="replace")


def decode_base64(coded: str, limit: int) -> bytes:
    """Decode base64 text, as used in Basic authorisation, into at most ``limit`` bytes.

    Leading spaces and tabs are skipped and decoding stops at the first
    character outside the base64 alphabet.
    """
    coded = coded.lstrip(" \t")
    valid = 0
    for char in coded:
        if char not in _BASE64_VALUES:
            break
        valid += 1
    decoded_length = ((valid + 3) // 4) * 3
    remaining = valid
    if decoded_length > limit:
        remaining = (limit * 4) // 3

    values = [_BASE64_VALUES.get(char, _BASE64_INVALID) for char in coded]

    def value_at(index: int) -> int:
        return values[index] if 0 <= index < len(values) else _BASE64_INVALID

    out = bytearray()
    pos = 0
    while remaining > 0:
        a, b, c, d = (value_at(pos + k) for k in range(4))
        out.append(((a << 2) | (b >> 4)) & 0xFF)
        out.append(((b << 4) | (c >> 2)) & 0xFF)
        out.append(((c << 6) | d) & 0xFF)
        pos += 4
        remaining -= 4
    if remaining & 3:
        decoded_length -= 2 if value_at(pos - 2) == _BASE64_INVALID else 1
    return bytes(out[: max(0, min(decoded_length, limit))])


def sanitise_url(url: str) -> str:
    """Collapse repeated slashes, drop '/./' and resolve '/../' one level up."""
    collapsed = "".join(
        char for pos, char in enumerate(url) if not (char == "/" and url[pos + 1 : pos + 2] == "/")
    )

    out: list[str] = []
    pos = 0
    while pos < len(collapsed):
        if collapsed.startswith("/./", pos):
            pos += 2
            continue
        out.append(collapsed[pos])
        pos += 1
    dotless = "".join(out)

    out = []
    last = 0
    pos = 0
    while pos < len(dotless):
        if dotless.startswith("/../", pos):
            del out[last:]
            pos += 3
            continue
        if dotless[pos] == "/":
            last = len(out)
        out.append(dotless[pos])
        pos += 1
    return "".join(out)


def parse_query(query: str | None) -> list[tuple[str, str]]:
    """Split a query string into (name, value) pairs with unescaped values.

    A pair is kept only once an '=' has been seen; a later '=' in the same
    pair starts the value afresh. Names are returned as written.
    """
    if not query:
        return []
    pairs: list[tuple[str, str]] = []
    name: list[str] = []
    value_start: int | None = None
    pos = 0
    for pos, char in enumerate(query):
        if char == "=":
            value_start = pos + 1
        elif char == "&":
            value = None if value_start is None else query[value_start:pos]
            pairs.append(("".join(name), unescape(value)))
            name = []
            value_start = None
        elif value_start is None:
            name.append(char)
    if value_start is not None:
        pairs.append(("".join(name), unescape(query[value_start:])))
    return pairs


def format_time_string(clock: float = 0) -> str:
    """HTTP date for ``clock`` seconds since the epoch; 0 means now."""
    moment = time.gmtime(time.time() if not clock else clock)
    return "%s, %02d %s %04d %02d:%02d:%02d GMT" % (
        _DAYS[moment.tm_wday],
        moment.tm_mday,
        _MONTHS[moment.tm_mon - 1],
        moment.tm_year,
        moment.tm_hour,
        moment.tm_min,
        moment.tm_sec,
    )