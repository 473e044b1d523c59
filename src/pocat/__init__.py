from .catalog import (
    Catalog,
    Comment,
    Header,
    Message,
    compound_key,
    parse,
    parse_file,
    parse_header,
    parse_text,
)
from .config import PoConfig, load_config
from .errors import (
    HeaderParseError,
    MalformedCatalog,
    MalformedEscape,
    MalformedExpression,
    PoError,
    UnrecognizedPluralForm,
)
from .plural import PluralSelector, compile_plural_forms, selector_for_language
from .writer import write_catalog, write_message

__all__ = (
    "Catalog",
    "Comment",
    "Header",
    "HeaderParseError",
    "MalformedCatalog",
    "MalformedEscape",
    "MalformedExpression",
    "Message",
    "PluralSelector",
    "PoConfig",
    "PoError",
    "UnrecognizedPluralForm",
    "compile_plural_forms",
    "compound_key",
    "load_config",
    "parse",
    "parse_file",
    "parse_header",
    "parse_text",
    "selector_for_language",
    "write_catalog",
    "write_message",
)
