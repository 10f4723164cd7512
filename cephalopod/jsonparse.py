"""A JSON parser with optional C-style comments and multi-document input."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

MAX_DEPTH = 200

_INT_DIGITS = 9  # longest literal (sign included) still read as an int

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_SIMPLE_ESCAPES = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "\\": "\\",
    "/": "/",
}


class JsonParse(enum.Enum):
    """Parsing strategy: plain JSON, or JSON with // and /* */ comments."""

    STANDARD = enum.auto()
    COMMENTS = enum.auto()


class JsonParseError(ValueError):
    """Raised when the input is not valid JSON."""

    def __init__(self, message: str, position: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.position = position


@dataclass
class MultiParseResult:
    """Values read by :func:`parse_multi`.

    ``stop_pos`` is the offset just after the last value parsed cleanly;
    ``error`` holds the message of the failure that ended parsing, if any.
    On a failure the last entry of ``values`` is None.
    """

    values: list[Any] = field(default_factory=list)
    stop_pos: int = 0
    error: str | None = None


def _esc(ch: str) -> str:
    code = ord(ch)
    if 0x20 <= code <= 0x7F:
        return f"'{ch}' ({code})"
    return f"({code})"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _emit(out: list[str], codepoint: int) -> None:
    if codepoint >= 0:
        out.append(chr(codepoint))


class _Parser:
    def __init__(self, text: str, strategy: JsonParse) -> None:
        self.text = text
        self.i = 0
        self.strategy = strategy

    def fail(self, message: str):
        raise JsonParseError(message, self.i)

    def peek(self, offset: int = 0) -> str:
        index = self.i + offset
        if 0 <= index < len(self.text):
            return self.text[index]
        return "\0"

    def consume_whitespace(self) -> None:
        while self.peek() in " \r\n\t":
            self.i += 1

    def consume_comment(self) -> bool:
        if self.peek() != "/":
            return False
        n = len(self.text)
        self.i += 1
        if self.i == n:
            self.fail("unexpected end of input inside comment")
        ch = self.peek()
        if ch == "/":
            self.i += 1
            if self.i == n:
                self.fail("unexpected end of input inside inline comment")
            while self.peek() != "\n":
                self.i += 1
                if self.i == n:
                    self.fail("unexpected end of input inside inline comment")
            return True
        if ch == "*":
            self.i += 1
            if self.i > n - 2:
                self.fail("unexpected end of input inside multi-line comment")
            while not (self.peek() == "*" and self.peek(1) == "/"):
                self.i += 1
                if self.i > n - 2:
                    self.fail("unexpected end of input inside multi-line comment")
            self.i += 2
            if self.i == n:
                self.fail("unexpected end of input inside multi-line comment")
            return True
        self.fail("malformed comment")

    def consume_garbage(self) -> None:
        self.consume_whitespace()
        if self.strategy is JsonParse.COMMENTS:
            while True:
                found = self.consume_comment()
                self.consume_whitespace()
                if not found:
                    break

    def get_next_token(self) -> str:
        self.consume_garbage()
        if self.i == len(self.text):
            self.fail("unexpected end of input")
        ch = self.text[self.i]
        self.i += 1
        return ch

    def parse_string(self) -> str:
        text = self.text
        n = len(text)
        out: list[str] = []
        pending = -1
        while True:
            if self.i == n:
                self.fail("unexpected end of input in string")
            ch = text[self.i]
            self.i += 1

            if ch == '"':
                _emit(out, pending)
                return "".join(out)

            if ord(ch) <= 0x1F:
                self.fail("unescaped " + _esc(ch) + " in string")

            if ch != "\\":
                _emit(out, pending)
                pending = -1
                out.append(ch)
                continue

            if self.i == n:
                self.fail("unexpected end of input in string")
            ch = text[self.i]
            self.i += 1

            if ch == "u":
                digits = text[self.i:self.i + 4]
                if len(digits) < 4 or any(d not in _HEX_DIGITS for d in digits):
                    self.fail("bad \\u escape: " + digits)
                codepoint = int(digits, 16)
                if 0xD800 <= pending <= 0xDBFF and 0xDC00 <= codepoint <= 0xDFFF:
                    out.append(
                        chr((((pending - 0xD800) << 10) | (codepoint - 0xDC00)) + 0x10000)
                    )
                    pending = -1
                else:
                    _emit(out, pending)
                    pending = codepoint
                self.i += 4
                continue

            _emit(out, pending)
            pending = -1
            simple = _SIMPLE_ESCAPES.get(ch)
            if simple is None:
                self.fail("invalid escape character " + _esc(ch))
            out.append(simple)

    def parse_number(self) -> int | float:
        start = self.i
        if self.peek() == "-":
            self.i += 1

        ch = self.peek()
        if ch == "0":
            self.i += 1
            if _is_digit(self.peek()):
                self.fail("leading 0s not permitted in numbers")
        elif "1" <= ch <= "9":
            self.i += 1
            while _is_digit(self.peek()):
                self.i += 1
        else:
            self.fail("invalid " + _esc(ch) + " in number")

        if self.peek() not in ".eE" and self.i - start <= _INT_DIGITS:
            return int(self.text[start:self.i])

        if self.peek() == ".":
            self.i += 1
            if not _is_digit(self.peek()):
                self.fail("at least one digit required in fractional part")
            while _is_digit(self.peek()):
                self.i += 1

        if self.peek() in "eE" and self.peek() != "\0":
            self.i += 1
            if self.peek() in "+-" and self.peek() != "\0":
                self.i += 1
            if not _is_digit(self.peek()):
                self.fail("at least one digit required in exponent")
            while _is_digit(self.peek()):
                self.i += 1

        return float(self.text[start:self.i])

    def expect(self, expected: str, value: Any) -> Any:
        self.i -= 1
        if self.text.startswith(expected, self.i):
            self.i += len(expected)
            return value
        got = self.text[self.i:self.i + len(expected)]
        self.fail(f"parse error: expected {expected}, got {got}")

    def parse_json(self, depth: int) -> Any:
        if depth > MAX_DEPTH:
            self.fail("exceeded maximum nesting depth")

        ch = self.get_next_token()

        if ch == "-" or _is_digit(ch):
            self.i -= 1
            return self.parse_number()
        if ch == "t":
            return self.expect("true", True)
        if ch == "f":
            return self.expect("false", False)
        if ch == "n":
            return self.expect("null", None)
        if ch == '"':
            return self.parse_string()

        if ch == "{":
            obj: dict[str, Any] = {}
            ch = self.get_next_token()
            if ch == "}":
                return obj
            while True:
                if ch != '"':
                    self.fail("expected '\"' in object, got " + _esc(ch))
                key = self.parse_string()
                ch = self.get_next_token()
                if ch != ":":
                    self.fail("expected ':' in object, got " + _esc(ch))
                obj[key] = self.parse_json(depth + 1)
                ch = self.get_next_token()
                if ch == "}":
                    return obj
                if ch != ",":
                    self.fail("expected ',' in object, got " + _esc(ch))
                ch = self.get_next_token()

        if ch == "[":
            items: list[Any] = []
            ch = self.get_next_token()
            if ch == "]":
                return items
            while True:
                self.i -= 1
                items.append(self.parse_json(depth + 1))
                ch = self.get_next_token()
                if ch == "]":
                    return items
                if ch != ",":
                    self.fail("expected ',' in list, got " + _esc(ch))
                self.get_next_token()

        self.fail("expected value, got " + _esc(ch))


def _as_text(text: str | bytes | None) -> str:
    if text is None:
        raise JsonParseError("null input", 0)
    if isinstance(text, (bytes, bytearray)):
        return bytes(text).decode("utf-8")
    return text


def parse(text: str | bytes, strategy: JsonParse = JsonParse.STANDARD) -> Any:
    """Parse one JSON document; raise JsonParseError on malformed input."""
    text = _as_text(text)
    parser = _Parser(text, strategy)
    result = parser.parse_json(0)
    parser.consume_garbage()
    if parser.i != len(text):
        parser.fail("unexpected trailing " + _esc(text[parser.i]))
    return result


def parse_multi(
    text: str | bytes, strategy: JsonParse = JsonParse.STANDARD
) -> MultiParseResult:
    """Parse JSON documents that follow one another, optionally separated
    by whitespace. Parsing stops at the first error, which is reported in
    the result rather than raised."""
    text = _as_text(text)
    parser = _Parser(text, strategy)
    result = MultiParseResult()
    while parser.i != len(text):
        try:
            result.values.append(parser.parse_json(0))
        except JsonParseError as exc:
            result.values.append(None)
            result.error = exc.message
            break
        try:
            parser.consume_garbage()
        except JsonParseError as exc:
            result.error = exc.message
            break
        result.stop_pos = parser.i
    return result