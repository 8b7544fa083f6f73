"""Key/value token formatting for single-line structured logs.

Purpose
-------
Guarantee that every emitted line can be re-tokenised into its key/value pairs
without ambiguity. Keys are sanitised destructively (they are short field
names); values are preserved losslessly by quoting when needed.

Contents
--------
* :func:`to_text` – default text representation of an arbitrary value.
* :func:`join_operands` – concatenate values, spacing only non-string neighbours.
* :func:`format_key` – replace illegal characters in a key with ``-``.
* :func:`format_value` – quote a value when it contains a pair delimiter.
* :func:`quote` / :func:`unquote_value` – reversible double-quote escaping.
* :func:`parse_line` – quote-aware tokenizer returning ``(key, token)`` pairs.

System Role
-----------
Pure domain helpers with no I/O. The entry builder in :mod:`lib_kv_log.core`
calls :func:`format_key` and :func:`format_value` for every field; tests and log
consumers use :func:`parse_line` to read lines back.
"""

from __future__ import annotations

import re
from typing import Final, Iterable

from .keys import EMPTY_KEY_PLACEHOLDER, ILLEGAL_KEY_CHARS, KEY_REPLACEMENT, PAIR_DELIMITERS

_KEY_TRANSLATION: Final[dict[int, str]] = {ord(char): KEY_REPLACEMENT for char in ILLEGAL_KEY_CHARS}
_DELIMITER_SET: Final[frozenset[str]] = frozenset(PAIR_DELIMITERS)

_SIMPLE_ESCAPES: Final[dict[str, str]] = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}
_SIMPLE_UNESCAPES: Final[dict[str, str]] = {escaped[1]: raw for raw, escaped in _SIMPLE_ESCAPES.items()}
_ESCAPE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|.)", re.DOTALL
)


def to_text(value: object) -> str:
    """Return the default text representation used for keys and values.

    ``None`` renders empty and booleans render lower-case so lines stay
    language neutral; everything else goes through :func:`str`.

    Examples
    --------
    >>> to_text(None), to_text(True), to_text(3), to_text("a b")
    ('', 'true', '3', 'a b')
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception as exc:  # noqa: BLE001 - a broken __str__ must not break the log call
        return f"<unprintable {type(value).__name__}: {type(exc).__name__}>"


def join_operands(parts: Iterable[object]) -> str:
    """Concatenate *parts*, adding a space only between two adjacent non-strings.

    Strings carry their own spacing, so ``("loading", "cfg")`` joins to
    ``"loadingcfg"`` while ``(1, 2)`` joins to ``"1 2"``.

    Examples
    --------
    >>> join_operands(["loading ", "cfg"])
    'loading cfg'
    >>> join_operands(["retry", 1, 2, "x"])
    'retry1 2x'
    """

    pieces: list[str] = []
    previous_is_text = True
    for part in parts:
        is_text = isinstance(part, str)
        if not is_text and not previous_is_text:
            pieces.append(" ")
        pieces.append(to_text(part))
        previous_is_text = is_text
    return "".join(pieces)


def format_key(key: object) -> str:
    """Return *key* as a token free of delimiters, ``=`` and ``"``.

    Why
    ----
    Field names must never need quoting, so illegal characters are replaced
    with ``-`` and an empty key becomes ``?``.

    Examples
    --------
    >>> format_key("user id")
    'user-id'
    >>> format_key('a="b"')
    'a--b-'
    >>> format_key("")
    '?'
    """

    text = to_text(key)
    if not text:
        return EMPTY_KEY_PLACEHOLDER
    return text.translate(_KEY_TRANSLATION)


def format_value(value: object) -> str:
    """Return *value* as a token, quoting it when it contains a pair delimiter.

    Values without delimiters are emitted verbatim, including any ``=`` or
    ``"`` they contain.

    Examples
    --------
    >>> format_value("a b")
    '"a b"'
    >>> format_value("k=v")
    'k=v'
    >>> format_value(3)
    '3'
    """

    text = to_text(value)
    if _DELIMITER_SET.isdisjoint(text):
        return text
    return quote(text)


def quote(text: str) -> str:
    """Wrap *text* in double quotes, escaping quotes, backslashes and non-printables.

    Printable characters (non-ASCII included) are kept as they are; anything
    else is escaped as ``\\xNN``, ``\\uNNNN`` or ``\\UNNNNNNNN``.

    Examples
    --------
    >>> quote('say "hi"\\n')
    '"say \\\\"hi\\\\"\\\\n"'
    """

    parts = ['"']
    for char in text:
        escaped = _SIMPLE_ESCAPES.get(char)
        if escaped is not None:
            parts.append(escaped)
        elif char.isprintable():
            parts.append(char)
        else:
            parts.append(_escape_codepoint(ord(char)))
    parts.append('"')
    return "".join(parts)


def unquote_value(token: str) -> str:
    """Reverse :func:`quote`; tokens that are not quoted are returned unchanged.

    Examples
    --------
    >>> unquote_value('"a b"')
    'a b'
    >>> unquote_value('plain')
    'plain'
    """

    if len(token) < 2 or not (token.startswith('"') and token.endswith('"')):
        return token
    return _ESCAPE_PATTERN.sub(_unescape_match, token[1:-1])


def parse_line(line: str) -> list[tuple[str, str]]:
    """Split *line* into ``(key, token)`` pairs honouring quoted values.

    Why
    ----
    Consumers (and the test-suite) need the inverse of the line assembly: split
    on the pair-delimiter set, keep quoted spans intact, and return the value
    tokens exactly as formatted. Pass tokens through :func:`unquote_value` to
    recover the original text.

    Notes
    -----
    A token without ``=`` is returned with an empty value.

    Examples
    --------
    >>> parse_line('reqid= at=x.py:1 user="a b" count=3')
    [('reqid', ''), ('at', 'x.py:1'), ('user', '"a b"'), ('count', '3')]
    """

    pairs: list[tuple[str, str]] = []
    pos = 0
    end = len(line)
    while pos < end:
        if line[pos] in _DELIMITER_SET:
            pos += 1
            continue
        start = pos
        while pos < end and line[pos] != "=" and line[pos] not in _DELIMITER_SET:
            pos += 1
        key = line[start:pos]
        if pos >= end or line[pos] != "=":
            pairs.append((key, ""))
            continue
        pos += 1
        value_end = _scan_value(line, pos)
        pairs.append((key, line[pos:value_end]))
        pos = value_end
    return pairs


def _scan_value(line: str, start: int) -> int:
    """Return the end index of the value token beginning at *start*."""

    end = len(line)
    if start < end and line[start] == '"':
        pos = start + 1
        while pos < end:
            char = line[pos]
            if char == "\\":
                pos += 2
                continue
            if char == '"':
                if pos + 1 == end or line[pos + 1] in _DELIMITER_SET:
                    return pos + 1
                break
            pos += 1
    pos = start
    while pos < end and line[pos] not in _DELIMITER_SET:
        pos += 1
    return pos


def _escape_codepoint(codepoint: int) -> str:
    if codepoint < 0x80:
        return f"\\x{codepoint:02x}"
    if codepoint < 0x10000:
        return f"\\u{codepoint:04x}"
    return f"\\U{codepoint:08x}"


def _unescape_match(match: re.Match[str]) -> str:
    escape = match.group(1)
    if len(escape) > 1:
        return chr(int(escape[1:], 16))
    return _SIMPLE_UNESCAPES.get(escape, escape)
