from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass, field
from typing import IO, Iterable, Iterator, Optional, Union

from .config import PoConfig
from .errors import (
    HeaderParseError,
    MalformedCatalog,
    MalformedExpression,
    UnrecognizedPluralForm,
)
from .plural import PluralSelector, compile_plural_forms, selector_for_language
from .scanner import Scanner
from .writer import Writer, write_catalog

logger = logging.getLogger(__name__)


@dataclass
class Comment:
    """Meta-data lines that precede a message."""

    translator_comments: list[str] = field(default_factory=list)
    extracted_comments: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)
    previous_msgctxt: str = ''
    previous_msgid: str = ''
    previous_msgid_plural: str = ''

    def is_empty(self) -> bool:
        return self == Comment()


@dataclass
class Message:
    """One catalog entry.

    ``msgstr`` holds a single translation for singular messages and one
    translation per plural form when ``msgid_plural`` is set.
    """

    msgid: str
    msgstr: list[str] = field(default_factory=lambda: [''])
    msgid_plural: str = ''
    msgctxt: str = ''
    comment: Comment = field(default_factory=Comment)
    obsolete: bool = False

    @property
    def is_plural(self) -> bool:
        return bool(self.msgid_plural)

    @property
    def is_header(self) -> bool:
        """True when this message would be read as the header entry of a catalog."""
        return self.msgid == '' and not self.msgid_plural and not self.msgctxt and len(self.msgstr) == 1

    @property
    def key(self) -> str:
        return compound_key(self.msgid, self.msgid_plural)

    def __str__(self) -> str:
        wr = Writer()
        wr.from_message(self)
        return wr.getvalue()


def compound_key(*ids: str) -> str:
    """Join message ids into the lookup key, dropping empty trailing ids."""
    return '|'.join(ids).strip('|')


class Header:
    """Ordered ``Key: value`` pairs looked up without regard to case.

    A key may occur several times; lookups return the last value while
    :meth:`keys` keeps the spelling and position of the first occurrence.
    """

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: list[tuple[str, str]] = []
        self._keys: dict[str, str] = {}
        for key, value in items:
            self.add(key, value)

    def add(self, key: str, value: str) -> None:
        self._items.append((key, value))
        self._keys.setdefault(key.casefold(), key)

    def _extend_last(self, text: str) -> None:
        key, value = self._items[-1]
        self._items[-1] = (key, f'{value} {text}' if value else text)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        values = self.getall(key)
        return values[-1] if values else default

    def getall(self, key: str) -> list[str]:
        folded = key.casefold()
        return [value for name, value in self._items if name.casefold() == folded]

    def keys(self) -> list[str]:
        return list(self._keys.values())

    def items(self) -> list[tuple[str, str]]:
        return [(key, self.get(key)) for key in self.keys()]

    def __contains__(self, key: str) -> bool:
        return key.casefold() in self._keys

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._keys)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return self._folded() == other._folded()

    def _folded(self) -> dict[str, str]:
        return {key.casefold(): value for key, value in self.items()}

    def __repr__(self) -> str:
        return f"Header({self.items()!r})"


def parse_header(text: str) -> Header:
    """Parse the translation of the header entry into a :class:`Header`."""
    header = Header()
    for lineno, line in enumerate(text.split('\n'), 1):
        if not line.strip():
            continue
        if line[0] in ' \t':
            if not header._items:
                raise HeaderParseError(f"header line {lineno}: continuation without a key: {line!r}")
            header._extend_last(line.strip())
            continue
        key, sep, value = line.partition(':')
        key = key.strip()
        if not sep or not key or any(ch.isspace() for ch in key):
            raise HeaderParseError(f"header line {lineno}: malformed header line: {line!r}")
        header.add(key, value.strip())
    return header


class Catalog:
    """A parsed PO file.

    ``messages`` keeps the catalog order; lookups go through an index on
    :func:`compound_key` in which a later duplicate replaces an earlier one.
    Obsolete messages stay in ``messages`` but are never looked up.
    """

    def __init__(
        self,
        messages: Iterable[Message] = (),
        header: Optional[Header] = None,
        pluralize: Optional[PluralSelector] = None,
        header_comment: Optional[Comment] = None,
    ) -> None:
        self.header = header if header is not None else Header()
        self.messages = tuple(messages)
        if pluralize is None:
            pluralize = selector_for_language(self.header.get('Language'))
        self.pluralize = pluralize
        self.header_comment = header_comment or Comment()
        index = {}
        for message in self.messages:
            if not message.obsolete:
                index[message.key] = message
        self._index = index

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def __getitem__(self, index: int) -> Message:
        return self.messages[index]

    def find(self, msgid: str, msgid_plural: str = '') -> Optional[Message]:
        return self._index.get(compound_key(msgid, msgid_plural))

    def gettext(self, msgid: str, *args) -> str:
        """Translate ``msgid``, falling back to ``msgid`` itself.

        Positional ``args`` are substituted with the ``%`` operator.
        """
        text = msgid
        message = self.find(msgid)
        if message is not None and message.msgstr and message.msgstr[0]:
            text = message.msgstr[0]
        return text % args if args else text

    def ngettext(self, msgid: str, msgid_plural: str, n: int, *args) -> str:
        """Translate the plural form selected for ``n``.

        Without a translation the result is ``msgid`` for form 0 and
        ``msgid_plural`` for any other form.
        """
        index = self.pluralize(n)
        text = msgid if index == 0 else msgid_plural
        message = self.find(msgid, msgid_plural)
        if message is not None and len(message.msgstr) > index and message.msgstr[index]:
            text = message.msgstr[index]
        return text % args if args else text

    def write_to(self, stream: IO, config: Optional[PoConfig] = None) -> int:
        return write_catalog(self, stream, config)

    def save(self, fpath: Union[str, os.PathLike], config: Optional[PoConfig] = None) -> None:
        with open(fpath, 'wb') as f:
            self.write_to(f, config)

    def __str__(self) -> str:
        wr = Writer()
        wr.from_catalog(self)
        return wr.getvalue()


def _read_message(scan: Scanner) -> Message:
    # The order of these calls follows the PO field order.
    comment = Comment(
        translator_comments=scan.mul('#'),
        extracted_comments=scan.mul('#.'),
        references=scan.spc('#:'),
        flags=scan.spc('#,'),
        previous_msgctxt=scan.one('msgctxt'),
        previous_msgid=scan.one('msgid'),
        previous_msgid_plural=scan.one('msgid_plural'),
    )
    msgctxt = scan.quo('msgctxt')
    scan.require('msgid')
    msgid = scan.quo('msgid')
    msgid_plural = scan.quo('msgid_plural')
    msgstr = scan.msgstr(plural=bool(msgid_plural))
    scan.require_end()
    return Message(
        msgid=msgid,
        msgstr=msgstr,
        msgid_plural=msgid_plural,
        msgctxt=msgctxt,
        comment=comment,
        obsolete=scan.obsolete,
    )


def _resolve_plural(header: Header) -> PluralSelector:
    plural_forms = header.get('Plural-Forms')
    if plural_forms:
        try:
            selector = compile_plural_forms(plural_forms)
        except MalformedExpression as exc:
            raise UnrecognizedPluralForm(f"unrecognized plural form selector: {plural_forms}") from exc
        if selector is None:
            raise UnrecognizedPluralForm(f"unrecognized plural form selector: {plural_forms}")
        logger.debug("plural forms from header: %s", selector.plural_forms)
        return selector
    logger.debug("plural forms from language %r", header.get('Language'))
    return selector_for_language(header.get('Language'))


def _iter_lines(stream: IO, encoding: str) -> Iterator[str]:
    for lineno, line in enumerate(stream):
        if isinstance(line, bytes):
            line = line.decode(encoding)
        if lineno == 0:
            line = line.lstrip('\ufeff')
        yield line


def parse(stream: IO, config: Optional[PoConfig] = None) -> Catalog:
    """Read a PO catalog from a binary or text stream."""
    config = config or PoConfig()
    scan = Scanner(_iter_lines(stream, config.encoding))
    messages = []
    while scan.next_message():
        message = _read_message(scan)
        if scan.err is not None:
            break
        messages.append(message)
    if scan.err is not None:
        raise scan.err
    if not messages:
        raise MalformedCatalog("catalog contains no messages")

    header = Header()
    header_comment = Comment()
    first = messages[0]
    if first.is_header:
        header = parse_header(first.msgstr[0])
        header_comment = first.comment
        messages = messages[1:]

    pluralize = _resolve_plural(header)
    if header.get('Plural-Forms'):
        for message in messages:
            if message.is_plural and len(message.msgstr) != pluralize.nplurals:
                raise MalformedCatalog(
                    f"message {message.msgid!r} has {len(message.msgstr)} plural translations, "
                    f"the catalog declares {pluralize.nplurals}"
                )

    logger.debug("parsed %d messages", len(messages))
    return Catalog(messages, header, pluralize, header_comment)


def parse_text(text: Union[str, bytes], config: Optional[PoConfig] = None) -> Catalog:
    if isinstance(text, bytes):
        return parse(io.BytesIO(text), config)
    return parse(io.StringIO(text, newline=''), config)


def parse_file(fpath: Union[str, os.PathLike], config: Optional[PoConfig] = None) -> Catalog:
    if not os.path.exists(fpath):
        raise FileNotFoundError(f"File not found: {fpath}")
    with open(fpath, 'rb') as f:
        return parse(f, config)
