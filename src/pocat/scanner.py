"""Line scanner for PO files.

The scanner reads one block of contiguous non-blank lines at a time. Comment
accessors take the lines of their class from the leading comment lines of the
block in any order; keyword accessors consume the head of the block in PO
field order and leave anything else in place.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional

from . import escape
from .errors import MalformedCatalog, PoError

_KEYWORD_PATTERN = re.compile(r'^(?P<keyword>msgctxt|msgid_plural|msgid|msgstr(?:\[(?P<index>\d+)\])?)\s*(?P<value>".*)$')
_OBSOLETE = '#~'


def _comment_class(line: str) -> Optional[str]:
    """Return the comment prefix of ``line`` or ``None`` for non-comments."""
    if not line.startswith('#'):
        return None
    second = line[1:2]
    if second in ('', ' ', '\t'):
        return '#'
    if second in '.:,|':
        return '#' + second
    return line[:2]


class Cursor:
    """The unread lines of the current block.

    Comment accessors take their lines from anywhere in the leading run of
    comment lines, keyword accessors only from the head.
    """

    def __init__(self, lines: list[tuple[int, str]]) -> None:
        self.lines = lines
        self._last = lines[-1][0] if lines else 0

    @property
    def head(self) -> Optional[str]:
        if self.lines:
            return self.lines[0][1]
        return None

    @property
    def lineno(self) -> int:
        if self.lines:
            return self.lines[0][0]
        return self._last

    def advance(self) -> None:
        del self.lines[0]

    def at_end(self) -> bool:
        return not self.lines

    def comment_positions(self, prefix: str) -> Iterator[int]:
        """Yield the positions of the leading comment lines of class ``prefix``."""
        for pos, (_lineno, text) in enumerate(self.lines):
            kind = _comment_class(text)
            if kind is None:
                return
            if kind == prefix:
                yield pos

    def take(self, prefix: str) -> list[str]:
        positions = list(self.comment_positions(prefix))
        taken = [self.lines[pos][1][len(prefix):] for pos in positions]
        for pos in reversed(positions):
            del self.lines[pos]
        return taken


class Scanner:
    """Splits a PO stream into message blocks and extracts their fields."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = enumerate(lines, 1)
        self._lookahead: Optional[tuple[int, str]] = None
        self._cursor = Cursor([])
        self.obsolete = False
        self.err: Optional[PoError] = None

    def _readline(self) -> Optional[tuple[int, str]]:
        if self._lookahead is not None:
            line, self._lookahead = self._lookahead, None
            return line
        line = next(self._lines, None)
        if line is None:
            return None
        return line[0], line[1].rstrip('\r\n')

    def _fail(self, exc: PoError) -> None:
        if self.err is None:
            self.err = exc
        self._cursor = Cursor([])

    def next_message(self) -> bool:
        """Load the next block, returning False at end of stream or after an error."""
        if self.err is not None:
            return False

        line = self._readline()
        while line is not None and not line[1].strip():
            line = self._readline()
        block = []
        obsolete = False
        while line is not None and line[1].strip():
            lineno, text = line
            if text.startswith(_OBSOLETE):
                # "#~ msgid" reads as "msgid", "#~| msgid" as "#| msgid"
                obsolete = True
                text = text[len(_OBSOLETE):]
                if text.startswith('|'):
                    text = '#' + text
                elif text.startswith(' '):
                    text = text[1:]
            block.append((lineno, text))
            line = self._readline()
        self._lookahead = line

        self._cursor = Cursor(block)
        self.obsolete = obsolete
        return bool(block)

    @property
    def lineno(self) -> int:
        return self._cursor.lineno

    def mul(self, prefix: str) -> list[str]:
        """Collect the comment lines of one class, dropping the prefix and one space."""
        return [text[1:] if text[:1] == ' ' else text for text in self._cursor.take(prefix)]

    def spc(self, prefix: str) -> list[str]:
        """Collect the tokens of the reference (``#:``) or flag (``#,``) lines."""
        tokens = []
        for text in self._cursor.take(prefix):
            if prefix == '#,':
                tokens.extend(token.strip() for token in text.split(',') if token.strip())
            else:
                tokens.extend(text.split())
        return tokens

    def _decode(self, segment: str, lineno: int) -> str:
        try:
            return escape.decode(segment.strip())
        except MalformedCatalog as exc:
            raise MalformedCatalog(str(exc), lineno) from None
        except PoError as exc:
            raise type(exc)(f"line {lineno}: {exc}") from None

    def _continuations(self) -> list[str]:
        cursor = self._cursor
        parts = []
        while cursor.head is not None and cursor.head.strip().startswith('"'):
            parts.append(self._decode(cursor.head, cursor.lineno))
            cursor.advance()
        return parts

    def one(self, keyword: str) -> str:
        """Read an optional ``#| keyword "..."`` previous-value field."""
        if self.err is not None:
            return ''
        lines = self._cursor.lines
        for pos in self._cursor.comment_positions('#|'):
            match = _KEYWORD_PATTERN.match(lines[pos][1][2:].strip())
            if match is not None and match.group('keyword') == keyword:
                break
        else:
            return ''

        end = pos + 1
        while end < len(lines) and _comment_class(lines[end][1]) == '#|' \
                and lines[end][1][2:].strip().startswith('"'):
            end += 1
        try:
            parts = [self._decode(match.group('value'), lines[pos][0])]
            parts.extend(self._decode(text[2:], lineno) for lineno, text in lines[pos + 1:end])
        except PoError as exc:
            self._fail(exc)
            return ''
        del lines[pos:end]
        return ''.join(parts)

    def _keyword(self) -> Optional[re.Match]:
        head = self._cursor.head
        if head is None:
            return None
        return _KEYWORD_PATTERN.match(head.strip())

    def require(self, keyword: str) -> None:
        """Record an error unless the block continues with ``keyword``."""
        if self.err is not None:
            return
        match = self._keyword()
        if match is None or match.group('keyword') != keyword:
            found = self._cursor.head or 'end of entry'
            self._fail(MalformedCatalog(f"expected {keyword}, found: {found}", self.lineno))

    def quo(self, keyword: str) -> str:
        """Read ``keyword "..."`` and its continuation lines, ``""`` if absent."""
        if self.err is not None:
            return ''
        match = self._keyword()
        if match is None or match.group('keyword') != keyword:
            return ''
        try:
            parts = [self._decode(match.group('value'), self.lineno)]
            self._cursor.advance()
            parts.extend(self._continuations())
        except PoError as exc:
            self._fail(exc)
            return ''
        return ''.join(parts)

    def msgstr(self, plural: bool = False) -> list[str]:
        """Read the translations: one ``msgstr`` or a run of ``msgstr[N]``."""
        if self.err is not None:
            return []
        match = self._keyword()
        if match is None or not match.group('keyword').startswith('msgstr'):
            self._fail(MalformedCatalog(f"expected msgstr, found: {self._cursor.head or 'end of entry'}", self.lineno))
            return []
        if match.group('index') is None:
            if plural:
                self._fail(MalformedCatalog("plural entry needs msgstr[N] translations", self.lineno))
                return []
            return [self.quo('msgstr')]
        if not plural:
            self._fail(MalformedCatalog("msgstr[N] used without msgid_plural", self.lineno))
            return []

        translations: list[str] = []
        while match is not None and match.group('index') is not None:
            index = int(match.group('index'))
            if index != len(translations):
                self._fail(MalformedCatalog(
                    f"expected msgstr[{len(translations)}], found msgstr[{index}]", self.lineno))
                return []
            value = self.quo(match.group('keyword'))
            if self.err is not None:
                return []
            translations.append(value)
            match = self._keyword()
        return translations

    def require_end(self) -> None:
        """Record an error if the block still holds unconsumed lines."""
        if self.err is None and not self._cursor.at_end():
            self._fail(MalformedCatalog(f"unexpected line: {self._cursor.head}", self._cursor.lineno))
