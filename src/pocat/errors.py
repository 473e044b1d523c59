from __future__ import annotations

from typing import Optional


class PoError(ValueError):
    """Base class for every error raised while reading a PO catalog."""


class MalformedEscape(PoError):
    """A quoted segment contains an invalid escape sequence."""


class MalformedCatalog(PoError):
    """The catalog violates the PO grammar."""

    def __init__(self, message: str, lineno: Optional[int] = None) -> None:
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)
        self.lineno = lineno


class MalformedExpression(PoError):
    """A plural expression is well formed but can not be evaluated safely."""


class UnrecognizedPluralForm(PoError):
    """The Plural-Forms header does not compile."""


class HeaderParseError(PoError):
    """The header entry is not made of ``Key: value`` lines."""
