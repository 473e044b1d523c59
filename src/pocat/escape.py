"""Quoted string codec for PO files."""

from __future__ import annotations

import re

from .errors import MalformedCatalog, MalformedEscape

_UNESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'a': '\a',
    'b': '\b',
    'f': '\f',
    'v': '\v',
    '\\': '\\',
    '"': '"',
}

_ESCAPES = {ord(raw): '\\' + letter for letter, raw in _UNESCAPES.items()}
_ESCAPES.update(
    {code: f'\\x{code:02x}' for code in list(range(0x20)) + [0x7f] if code not in _ESCAPES}
)

_ESCAPE_PATTERN = re.compile(r'\\(x[0-9A-Fa-f]{2}|[0-7]{1,3}|.?)|"', re.DOTALL)


def _replace_escape(match: re.Match) -> str:
    if match.group(0) == '"':
        raise MalformedCatalog("unescaped quote inside a quoted string")
    seq = match.group(1)
    if seq in _UNESCAPES:
        return _UNESCAPES[seq]
    if seq.startswith('x') and len(seq) == 3:
        return chr(int(seq[1:], 16))
    if seq and seq[0] in '01234567':
        return chr(int(seq, 8))
    if seq == '':
        raise MalformedEscape("trailing backslash in quoted string")
    raise MalformedEscape(f"unknown escape sequence: \\{seq}")


def decode(segment: str) -> str:
    r"""Strip the quotes from ``segment`` and resolve its escape sequences.

    >>> decode('"Say:\\n  \\"hello\\""')
    'Say:\n  "hello"'

    Raises :class:`MalformedCatalog` when the segment is not properly quoted
    and :class:`MalformedEscape` for an unknown escape or a trailing backslash.
    """
    if len(segment) < 2 or not segment.startswith('"') or not segment.endswith('"'):
        raise MalformedCatalog(f"unterminated quote: {segment}")
    body = segment[1:-1]
    trailing = len(body) - len(body.rstrip('\\'))
    if trailing % 2:
        raise MalformedEscape("trailing backslash in quoted string")
    return _ESCAPE_PATTERN.sub(_replace_escape, body)


def encode(raw: str) -> str:
    """Return ``raw`` as a double quoted PO segment."""
    return '"' + raw.translate(_ESCAPES) + '"'
