"""Tokenizer and parser for the ``name = value`` settings format."""

from __future__ import annotations

import re
from typing import Callable

SettingHandler = Callable[[str, str], None]

_ERROR_PREFIX = "Error in settings file: "
_WHITESPACE = " \t\r\n"
_LINE_END_RE = re.compile(r"[\r\n]")
_IDENTIFIER_RE = re.compile(r"[A-Za-z][A-Za-z0-9_-]*")
_HEX_DIGITS_RE = re.compile(r"[0-9A-Fa-f]+")
_DECIMAL_RE = re.compile(r"[0-9][0-9.]*")

_UINT_RE = re.compile(r"\s*([+-]?)(0[xX][0-9A-Fa-f]+|0[0-7]*|[1-9][0-9]*)")
_FLOAT_RE = re.compile(
    r"\s*[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_ULONG_MAX = 2**64 - 1


class SettingsValueError(ValueError):
    """Raised when a value token cannot be read as the requested type."""


def _is_ascii_alpha(c: str) -> bool:
    return c.isascii() and c.isalpha()


def _is_ascii_digit(c: str) -> bool:
    return c.isascii() and c.isdigit()


def _is_identifier(token: str) -> bool:
    return _is_ascii_alpha(token[0])


class SettingsParser:
    """Parses settings text, passing each ``name = value`` pair to a handler.

    Problems found while parsing are collected, one message each, in ``errors``.
    """

    def __init__(self, text: str):
        self._text = text
        self._pos = 0
        self.errors: list[str] = []

    def parse(self, handler: SettingHandler) -> None:
        """Parse the whole text, calling ``handler(name, value_token)`` per setting."""
        while True:
            token = self._next_token()
            if not token:
                break
            if token in (",", ";"):
                # Commas and semicolons are allowed between settings.
                continue

            if not _is_identifier(token):
                self._error(f'not a setting name: "{token}"')
                return
            setting_name = token
            if self._next_token() != "=":
                self._error(f"missing '=' for \"{setting_name}\" setting.")
                return
            value_token = self._next_token()
            if not value_token:
                self._error(f'missing value for "{setting_name}" setting.')
                return

            handler(setting_name, value_token)

    def _error(self, message: str) -> None:
        self.errors.append(_ERROR_PREFIX + message)

    def _skip_space_and_comments(self) -> bool:
        """Advance past whitespace and comments; False if the text ran out."""
        text = self._text
        while self._pos < len(text):
            c = text[self._pos]
            if c in _WHITESPACE:
                self._pos += 1
            elif c == "#":
                line_end = _LINE_END_RE.search(text, self._pos + 1)
                if line_end is None:
                    self._pos = len(text)
                    return False
                self._pos = line_end.end()
            else:
                return True
        return False

    def _next_token(self) -> str:
        if not self._skip_space_and_comments():
            return ""

        text = self._text
        start = self._pos
        c = text[start]
        self._pos = start + 1

        if c in "\"'":
            while True:
                if self._pos >= len(text):
                    self._error("unterminated string.")
                    return ""
                ch = text[self._pos]
                self._pos += 1
                if ch == c:
                    break
                if ch == "\\":
                    if self._pos >= len(text):
                        self._error("unterminated string.")
                        return ""
                    self._pos += 1

        elif _is_ascii_alpha(c):
            self._pos = _IDENTIFIER_RE.match(text, start).end()

        elif _is_ascii_digit(c):
            if c == "0" and self._pos < len(text) and text[self._pos] in "xX":
                self._pos += 1
                digits = _HEX_DIGITS_RE.match(text, self._pos)
                if digits is None:
                    self._error("incomplete hex number.")
                    return ""
                self._pos = digits.end()
            else:
                self._pos = _DECIMAL_RE.match(text, start).end()

        elif c in "=,;":
            pass

        else:
            self._error(f"invalid character: '{c}'")
            return ""

        return text[start:self._pos]


def unquote_string(token: str) -> str:
    """Return the contents of a quoted token with escapes resolved.

    A token that is not a quoted string yields an empty string.
    """
    if not token or token[0] not in "\"'":
        return ""
    chars = iter(token[1:-1])
    result = []
    for c in chars:
        if c == "\\":
            c = next(chars, "")
        result.append(c)
    return "".join(result)


def quote_string(text: str) -> str:
    """Quote a string so that :func:`unquote_string` gives it back."""
    escaped = "".join("\\" + c if c in "\"\\" else c for c in text)
    return f'"{escaped}"'


def parse_uint32(token: str) -> int:
    """Read an unsigned 32-bit integer in decimal, octal (``0``) or hex (``0x``)."""
    if token == "":
        return 0
    match = _UINT_RE.match(token)
    if match is None or match.end() != len(token):
        raise SettingsValueError(f"not an unsigned integer: {token!r}")
    sign, digits = match.groups()
    if digits[:2].lower() == "0x":
        value = int(digits[2:], 16)
    elif len(digits) > 1 and digits[0] == "0":
        value = int(digits, 8)
    else:
        value = int(digits)
    if value > _ULONG_MAX:
        value = _ULONG_MAX
    elif sign == "-":
        value = -value % (_ULONG_MAX + 1)
    return value & 0xFFFFFFFF


def parse_float(token: str) -> float:
    """Read a floating-point number."""
    if token == "":
        return 0.0
    match = _FLOAT_RE.match(token)
    if match is None or match.end() != len(token):
        raise SettingsValueError(f"not a number: {token!r}")
    return float(match.group(0).strip())


def parse_bool(token: str) -> bool:
    """Read ``true`` or ``false``."""
    if token == "true":
        return True
    if token == "false":
        return False
    raise SettingsValueError(f"not a boolean: {token!r}")