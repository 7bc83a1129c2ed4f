"""Text form of JSON trees: a lenient parser, two printers and a minifier."""

from __future__ import annotations

import math

from wifidog.jsonitem import (
    JsonItem,
    JsonType,
    create_array,
    create_false,
    create_null,
    create_number,
    create_object,
    create_string,
    create_true,
)

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_DBL_EPSILON = 2.220446049250313e-16
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_SIMPLE_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}
_PRINT_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


class JsonParseError(ValueError):
    """Raised when text cannot be parsed; ``position`` is where parsing failed."""

    def __init__(self, position: int, text: str) -> None:
        self.position = position
        excerpt = text[position : position + 20]
        super().__init__(f"invalid JSON at position {position}: {excerpt!r}")


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, position: int) -> JsonParseError:
        return JsonParseError(position, self.text)

    def char(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def is_digit(self, offset: int = 0) -> bool:
        c = self.char(offset)
        return c != "" and "0" <= c <= "9"

    def skip(self) -> None:
        text = self.text
        while self.pos < len(text) and ord(text[self.pos]) <= 32:
            self.pos += 1

    def value(self) -> JsonItem:
        text, start = self.text, self.pos
        for word, factory in (("null", create_null), ("false", create_false), ("true", create_true)):
            if text.startswith(word, start):
                self.pos += len(word)
                item = factory()
                if word == "true":
                    item.value_int = 1
                return item
        c = self.char()
        if c == '"':
            return create_string(self.string())
        if c == "-" or self.is_digit():
            return self.number()
        if c == "[":
            return self.array()
        if c == "{":
            return self.object()
        raise self.error(start)

    def number(self) -> JsonItem:
        n = 0.0
        sign = 1.0
        scale = 0
        subscale = 0
        subscale_sign = 1
        if self.char() == "-":
            sign = -1.0
            self.pos += 1
        if self.char() == "0":
            self.pos += 1
        if self.is_digit() and self.char() != "0":
            while self.is_digit():
                n = n * 10.0 + (ord(self.char()) - 48)
                self.pos += 1
        if self.char() == "." and self.is_digit(1):
            self.pos += 1
            while self.is_digit():
                n = n * 10.0 + (ord(self.char()) - 48)
                scale -= 1
                self.pos += 1
        if self.char() in ("e", "E") and self.char() != "":
            self.pos += 1
            if self.char() == "+":
                self.pos += 1
            elif self.char() == "-":
                subscale_sign = -1
                self.pos += 1
            while self.is_digit():
                subscale = subscale * 10 + (ord(self.char()) - 48)
                self.pos += 1
        try:
            factor = 10.0 ** (scale + subscale * subscale_sign)
        except OverflowError:
            factor = math.inf
        return create_number(sign * n * factor)

    def hex4(self, index: int) -> int:
        digits = self.text[index : index + 4]
        if len(digits) < 4 or not set(digits) <= _HEX_DIGITS:
            return 0
        return int(digits, 16)

    def unicode_escape(self) -> str | None:
        """Decode a \\u escape with ``pos`` on the 'u'; leaves ``pos`` on its last digit."""
        code = self.hex4(self.pos + 1)
        self.pos += 4
        if 0xDC00 <= code <= 0xDFFF or code == 0:
            return None
        if 0xD800 <= code <= 0xDBFF:
            if self.text[self.pos + 1 : self.pos + 3] != "\\u":
                return None
            low = self.hex4(self.pos + 3)
            self.pos += 6
            if not 0xDC00 <= low <= 0xDFFF:
                return None
            code = 0x10000 + (((code & 0x3FF) << 10) | (low & 0x3FF))
        return chr(code)

    def string(self) -> str:
        if self.char() != '"':
            raise self.error(self.pos)
        self.pos += 1
        text = self.text
        out: list[str] = []
        while self.pos < len(text) and text[self.pos] != '"':
            c = text[self.pos]
            if c != "\\":
                out.append(c)
                self.pos += 1
                continue
            self.pos += 1
            if self.pos >= len(text):
                break
            escape = text[self.pos]
            if escape in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[escape])
            elif escape == "u":
                decoded = self.unicode_escape()
                if decoded is not None:
                    out.append(decoded)
            else:
                out.append(escape)
            self.pos += 1
        if self.char() == '"':
            self.pos += 1
        return "".join(out)

    def array(self) -> JsonItem:
        item = create_array()
        self.pos += 1
        self.skip()
        if self.char() == "]":
            self.pos += 1
            return item
        self.skip()
        item.children.append(self.value())
        self.skip()
        while self.char() == ",":
            self.pos += 1
            self.skip()
            item.children.append(self.value())
            self.skip()
        if self.char() == "]":
            self.pos += 1
            return item
        raise self.error(self.pos)

    def member(self) -> JsonItem:
        self.skip()
        name = self.string()
        self.skip()
        if self.char() != ":":
            raise self.error(self.pos)
        self.pos += 1
        self.skip()
        child = self.value()
        child.name = name
        self.skip()
        return child

    def object(self) -> JsonItem:
        item = create_object()
        self.pos += 1
        self.skip()
        if self.char() == "}":
            self.pos += 1
            return item
        item.children.append(self.member())
        while self.char() == ",":
            self.pos += 1
            item.children.append(self.member())
        if self.char() == "}":
            self.pos += 1
            return item
        raise self.error(self.pos)


def parse_with_opts(text: str, require_null_terminated: bool) -> tuple[JsonItem, int]:
    """Parse ``text`` and return the item with the index where parsing stopped.

    With ``require_null_terminated`` only whitespace may follow the value.
    """
    parser = _Parser(text)
    parser.skip()
    item = parser.value()
    if require_null_terminated:
        parser.skip()
        if parser.pos < len(text):
            raise parser.error(parser.pos)
    return item, parser.pos


def parse(text: str) -> JsonItem:
    """Parse the value at the start of ``text``; trailing text is ignored."""
    return parse_with_opts(text, False)[0]


def _print_number(item: JsonItem) -> str:
    d = item.value_double
    if abs(item.value_int - d) <= _DBL_EPSILON and _INT_MIN <= d <= _INT_MAX:
        return "%d" % item.value_int
    if math.isfinite(d) and abs(math.floor(d) - d) <= _DBL_EPSILON and abs(d) < 1.0e60:
        return "%.0f" % d
    if abs(d) < 1.0e-6 or abs(d) > 1.0e9:
        return "%e" % d
    return "%f" % d


def _print_string(value: str | None) -> str:
    if value is None:
        return ""
    parts = ['"']
    for c in value:
        if c in _PRINT_ESCAPES:
            parts.append(_PRINT_ESCAPES[c])
        elif ord(c) < 32:
            parts.append("\\u%04x" % ord(c))
        else:
            parts.append(c)
    parts.append('"')
    return "".join(parts)


def _print_array(item: JsonItem, depth: int, fmt: bool) -> str:
    if not item.children:
        return "[]"
    separator = ", " if fmt else ","
    return "[" + separator.join(_print_value(child, depth + 1, fmt) for child in item.children) + "]"


def _print_object(item: JsonItem, depth: int, fmt: bool) -> str:
    if not item.children:
        return "{" + ("\n" + "\t" * (depth - 1) if fmt else "") + "}"
    depth += 1
    indent = "\t" * depth if fmt else ""
    colon = ":\t" if fmt else ":"
    newline = "\n" if fmt else ""
    last = len(item.children) - 1
    parts = ["{", newline]
    for index, child in enumerate(item.children):
        parts.append(indent)
        parts.append(_print_string(child.name))
        parts.append(colon)
        parts.append(_print_value(child, depth, fmt))
        if index != last:
            parts.append(",")
        parts.append(newline)
    if fmt:
        parts.append("\t" * (depth - 1))
    parts.append("}")
    return "".join(parts)


def _print_value(item: JsonItem, depth: int, fmt: bool) -> str:
    kind = item.type
    if kind is JsonType.NULL:
        return "null"
    if kind is JsonType.FALSE:
        return "false"
    if kind is JsonType.TRUE:
        return "true"
    if kind is JsonType.NUMBER:
        return _print_number(item)
    if kind is JsonType.STRING:
        return _print_string(item.value_string)
    if kind is JsonType.ARRAY:
        return _print_array(item, depth, fmt)
    return _print_object(item, depth, fmt)


def print_item(item: JsonItem) -> str:
    """Render ``item`` as indented text."""
    return _print_value(item, 0, True)


def print_unformatted(item: JsonItem) -> str:
    """Render ``item`` as compact text."""
    return _print_value(item, 0, False)


def minify(text: str) -> str:
    """Strip whitespace and // and /* */ comments outside string literals."""
    out: list[str] = []
    pos = 0
    end = len(text)
    while pos < end:
        c = text[pos]
        if c in " \t\r\n":
            pos += 1
        elif text.startswith("//", pos):
            newline = text.find("\n", pos)
            pos = end if newline < 0 else newline
        elif text.startswith("/*", pos):
            close = text.find("*/", pos)
            pos = end if close < 0 else close + 2
        elif c == '"':
            out.append(c)
            pos += 1
            while pos < end and text[pos] != '"':
                if text[pos] == "\\" and pos + 1 < end:
                    out.append(text[pos])
                    pos += 1
                out.append(text[pos])
                pos += 1
            if pos < end:
                out.append(text[pos])
                pos += 1
        else:
            out.append(c)
            pos += 1
    return "".join(out)