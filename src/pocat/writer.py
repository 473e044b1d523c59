"""Serialize catalogs back to PO text."""

from __future__ import annotations

import io
import logging
import re
from typing import IO, Iterable, Optional

from .config import PoConfig
from .escape import encode

logger = logging.getLogger(__name__)

_LINE_PATTERN = re.compile(r'[^\n]*\n|[^\n]+')
_WORD_PATTERN = re.compile(r'\S+\s*|\s+')


def _split_lines(value: str) -> list[str]:
    """Split after every newline, keeping the newline on its line."""
    return _LINE_PATTERN.findall(value) or ['']


def _wrap(piece: str, width: int) -> list[str]:
    """Split ``piece`` at spaces so that every quoted part fits in ``width``."""
    parts: list[str] = []
    current = ''
    for word in _WORD_PATTERN.findall(piece):
        if current and len(encode(current + word)) > width:
            parts.append(current)
            current = word
        else:
            current += word
    parts.append(current)
    return parts


class Writer:
    """Accumulates PO lines; the methods mirror the scanner accessors."""

    def __init__(self, config: Optional[PoConfig] = None) -> None:
        self.config = config or PoConfig()
        self._lines: list[str] = []

    def _line(self, text: str) -> None:
        self._lines.append(text)

    def newline(self) -> None:
        self._line('')

    def mul(self, prefix: str, items: Iterable[str]) -> None:
        for item in items:
            self._line(prefix + item if item else prefix.rstrip())

    def spc(self, prefix: str, items: Iterable[str], sep: str = ' ') -> None:
        items = list(items)
        if items:
            self._line(prefix + sep.join(items))

    def quo(self, keyword: str, value: str, prefix: str = '') -> None:
        width = self.config.wrap_width
        pieces = _split_lines(value)
        single = f'{prefix}{keyword} {encode(value)}'
        if len(pieces) == 1 and (width <= 0 or len(single) <= width):
            self._line(single)
            return

        self._line(f'{prefix}{keyword} ""')
        for piece in pieces:
            parts = _wrap(piece, width - len(prefix)) if width > 0 else [piece]
            for part in parts:
                self._line(prefix + encode(part))

    def opt(self, keyword: str, value: str, prefix: str = '') -> None:
        if value:
            self.quo(keyword, value, prefix)

    def one(self, keyword: str, value: str, prefix: str = '#| ') -> None:
        self.opt(keyword, value, prefix)

    def msgstr(self, translations: list[str], prefix: str = '') -> None:
        self.quo('msgstr', translations[0] if translations else '', prefix)

    def plural(self, translations: list[str], prefix: str = '') -> None:
        for index, value in enumerate(translations):
            self.quo(f'msgstr[{index}]', value, prefix)

    def from_comment(self, comment, obsolete: bool = False) -> None:
        self.mul('# ', comment.translator_comments)
        self.mul('#. ', comment.extracted_comments)
        self.spc('#: ', comment.references)
        self.spc('#, ', comment.flags, sep=', ')
        prefix = '#~| ' if obsolete else '#| '
        self.one('msgctxt', comment.previous_msgctxt, prefix)
        self.one('msgid', comment.previous_msgid, prefix)
        self.one('msgid_plural', comment.previous_msgid_plural, prefix)

    def from_message(self, message) -> None:
        prefix = '#~ ' if message.obsolete else ''
        self.from_comment(message.comment, message.obsolete)
        self.opt('msgctxt', message.msgctxt, prefix)
        self.quo('msgid', message.msgid, prefix)
        self.opt('msgid_plural', message.msgid_plural, prefix)
        if message.msgid_plural:
            self.plural(message.msgstr, prefix)
        else:
            self.msgstr(message.msgstr, prefix)

    def from_header(self, header, comment=None) -> None:
        keys = list(header.keys())
        if self.config.sort_header:
            keys.sort()
        if comment is not None:
            self.from_comment(comment)
        self.quo('msgid', '')
        self.quo('msgstr', ''.join(f'{key}: {header.get(key)}\n' for key in keys))

    def from_catalog(self, catalog) -> None:
        # An empty header entry is still needed when the first message would
        # otherwise be read back as the header.
        first_is_header = bool(catalog.messages) and catalog.messages[0].is_header
        if len(catalog.header) > 0 or not catalog.header_comment.is_empty() or first_is_header:
            self.from_header(catalog.header, catalog.header_comment)
            self.newline()
        for message in catalog.messages:
            self.from_message(message)
            self.newline()

    def getvalue(self) -> str:
        newline = self.config.newline
        return ''.join(line + newline for line in self._lines)

    def to(self, stream: IO) -> int:
        """Write the accumulated text to a text or binary stream."""
        text = self.getvalue()
        if isinstance(stream, io.TextIOBase):
            return stream.write(text)
        return stream.write(text.encode(self.config.encoding))


def write_message(message, stream: IO, config: Optional[PoConfig] = None) -> int:
    wr = Writer(config)
    wr.from_message(message)
    return wr.to(stream)


def write_catalog(catalog, stream: IO, config: Optional[PoConfig] = None) -> int:
    """Write ``catalog`` to ``stream`` and return the amount written."""
    wr = Writer(config)
    wr.from_catalog(catalog)
    written = wr.to(stream)
    logger.debug("wrote %d messages (%d units)", len(catalog.messages), written)
    return written
