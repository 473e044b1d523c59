"""Plural-Forms expressions.

A ``Plural-Forms`` header looks like ``nplurals=2; plural=(n != 1);``. The
expression is a small C subset over the single variable ``n``; it is parsed
into a tree of the node types below and evaluated by :func:`evaluate`.

https://www.gnu.org/software/gettext/manual/gettext.html#Plural-forms
"""

from __future__ import annotations

import logging
import operator
import re
from collections import namedtuple
from functools import lru_cache
from typing import Iterator, Optional

from .errors import MalformedExpression

logger = logging.getLogger(__name__)

Var = namedtuple('Var', [])
Num = namedtuple('Num', ['value'])
Not = namedtuple('Not', ['operand'])
BinOp = namedtuple('BinOp', ['op', 'left', 'right'])
Cond = namedtuple('Cond', ['test', 'if_true', 'if_false'])

_FORMS_PATTERN = re.compile(
    r"^\s*nplurals\s*=\s*(?P<nplurals>\d+)\s*;\s*plural\s*=\s*(?P<expr>[^;]+?)\s*;?\s*$"
)

_TOKEN_PATTERN = re.compile(r"""
        (?P<WHITESPACES>[ \t]+)                 | # spaces and horizontal tabs
        (?P<NUMBER>[0-9]+\b)                    | # decimal integer
        (?P<NAME>n\b)                           | # only n is allowed
        (?P<PARENTHESIS>[()])                   |
        (?P<OPERATOR>[%/?:]|[<>!=]=|[<>!]|&&|\|\|) |
        (?P<INVALID>\w+|.)                        # invalid token
    """, re.VERBOSE | re.DOTALL)

# Binary operators from the loosest to the tightest binding level.
_BINARY_LEVELS = (
    ('||',),
    ('&&',),
    ('==', '!='),
    ('<', '>', '<=', '>='),
    ('%', '/'),
)

_COMPARISONS = {
    '==': operator.eq,
    '!=': operator.ne,
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
}


class _SyntaxError(Exception):
    pass


def _tokenize(expression: str) -> Iterator[str]:
    for mo in _TOKEN_PATTERN.finditer(expression):
        kind = mo.lastgroup
        if kind == 'WHITESPACES':
            continue
        value = mo.group(kind)
        if kind == 'INVALID':
            raise _SyntaxError(f"invalid token in plural form: {value}")
        yield value
    yield ''


class _Parser:
    """Recursive descent parser with one token of lookahead."""

    def __init__(self, expression: str) -> None:
        self._tokens = _tokenize(expression)
        self._token = next(self._tokens)

    def _advance(self) -> str:
        token = self._token
        self._token = next(self._tokens, '')
        return token

    def _expect(self, token: str) -> None:
        if self._token != token:
            found = self._token or 'end of plural form'
            raise _SyntaxError(f"expected {token!r}, found {found!r}")
        self._advance()

    def parse(self):
        node = self._conditional()
        if self._token:
            raise _SyntaxError(f"unexpected token in plural form: {self._token}")
        return node

    def _conditional(self):
        test = self._binary(0)
        if self._token != '?':
            return test
        self._advance()
        if_true = self._conditional()
        self._expect(':')
        if_false = self._conditional()
        return Cond(test, if_true, if_false)

    def _binary(self, level: int):
        if level == len(_BINARY_LEVELS):
            return self._unary()
        node = self._binary(level + 1)
        while self._token in _BINARY_LEVELS[level]:
            op = self._advance()
            right = self._binary(level + 1)
            if op == '/':
                raise MalformedExpression("division is not allowed in plural forms")
            if op == '%':
                if not isinstance(right, Num):
                    raise MalformedExpression("modulus must be an integer literal")
                if right.value == 0:
                    raise MalformedExpression("modulus by zero in plural form")
            node = BinOp(op, node, right)
        return node

    def _unary(self):
        if self._token == '!':
            self._advance()
            return Not(self._unary())
        if self._token == '(':
            self._advance()
            node = self._conditional()
            self._expect(')')
            return node
        token = self._advance()
        if token == 'n':
            return Var()
        if token.isdigit():
            return Num(int(token, 10))
        raise _SyntaxError(f"unexpected token in plural form: {token or 'end of input'}")


def evaluate(node, n: int) -> int:
    """Evaluate a parsed plural expression for the magnitude ``n``."""
    if isinstance(node, Var):
        return n
    if isinstance(node, Num):
        return node.value
    if isinstance(node, Not):
        return int(not evaluate(node.operand, n))
    if isinstance(node, Cond):
        if evaluate(node.test, n):
            return evaluate(node.if_true, n)
        return evaluate(node.if_false, n)
    if node.op == '&&':
        return int(bool(evaluate(node.left, n)) and bool(evaluate(node.right, n)))
    if node.op == '||':
        return int(bool(evaluate(node.left, n)) or bool(evaluate(node.right, n)))
    left = evaluate(node.left, n)
    right = evaluate(node.right, n)
    if node.op == '%':
        return left % right
    return int(_COMPARISONS[node.op](left, right))


class PluralSelector:
    """Maps a count onto the index of the plural translation to use."""

    def __init__(self, nplurals: int, expression: str, tree) -> None:
        self.nplurals = nplurals
        self.expression = expression
        self._tree = tree

    def __call__(self, n: int) -> int:
        index = evaluate(self._tree, abs(int(n)))
        # Like the C library, an index outside the declared forms means form 0.
        if not 0 <= index < self.nplurals:
            return 0
        return index

    @property
    def plural_forms(self) -> str:
        return f"nplurals={self.nplurals}; plural={self.expression};"

    def __repr__(self) -> str:
        return f"<PluralSelector {self.plural_forms!r}>"


def parse_expression(expression: str):
    """Parse a bare plural expression into its tree.

    Returns ``None`` when the expression is not recognized, raises
    :class:`MalformedExpression` when it recognizes a forbidden construct.
    """
    try:
        return _Parser(expression).parse()
    except _SyntaxError as exc:
        logger.debug("unrecognized plural expression %r: %s", expression, exc)
        return None
    except RecursionError:
        logger.debug("plural expression too complex: %r", expression)
        return None


def compile_plural_forms(text: str) -> Optional[PluralSelector]:
    """Compile a ``Plural-Forms`` header value.

    >>> select = compile_plural_forms("nplurals=2; plural=(n != 1);")
    >>> [select(n) for n in (0, 1, 2)]
    [1, 0, 1]
    """
    match = _FORMS_PATTERN.match(text or '')
    if match is None:
        return None
    nplurals = int(match.group('nplurals'))
    if nplurals < 1:
        return None
    expression = match.group('expr')
    tree = parse_expression(expression)
    if tree is None:
        return None
    return PluralSelector(nplurals, expression, tree)


_SHAPES = {
    'one': "nplurals=1; plural=0;",
    'germanic': "nplurals=2; plural=(n != 1);",
    'french': "nplurals=2; plural=(n > 1);",
    'slavic': (
        "nplurals=3; plural=(n%10==1 && n%100!=11 ? 0 : "
        "n%10>=2 && n%10<=4 && (n%100<10 || n%100>=20) ? 1 : 2);"
    ),
    'czech': "nplurals=3; plural=(n==1) ? 0 : (n>=2 && n<=4) ? 1 : 2;",
    'polish': (
        "nplurals=3; plural=(n==1 ? 0 : "
        "n%10>=2 && n%10<=4 && (n%100<10 || n%100>=20) ? 1 : 2);"
    ),
    'lithuanian': (
        "nplurals=3; plural=(n%10==1 && n%100!=11 ? 0 : "
        "n%10>=2 && (n%100<10 || n%100>=20) ? 1 : 2);"
    ),
    'latvian': "nplurals=3; plural=(n%10==1 && n%100!=11 ? 0 : n != 0 ? 1 : 2);",
    'romanian': "nplurals=3; plural=(n==1 ? 0 : (n==0 || (n%100 > 0 && n%100 < 20)) ? 1 : 2);",
    'slovenian': "nplurals=4; plural=(n%100==1 ? 0 : n%100==2 ? 1 : n%100==3 || n%100==4 ? 2 : 3);",
    'irish': "nplurals=5; plural=(n==1 ? 0 : n==2 ? 1 : n<7 ? 2 : n<11 ? 3 : 4);",
    'arabic': (
        "nplurals=6; plural=(n==0 ? 0 : n==1 ? 1 : n==2 ? 2 : "
        "n%100>=3 && n%100<=10 ? 3 : n%100>=11 ? 4 : 5);"
    ),
}

DEFAULT_SHAPE = 'germanic'

LANGUAGE_SHAPES = {
    # Asian languages without grammatical number
    'ja': 'one', 'ko': 'one', 'zh': 'one', 'vi': 'one', 'th': 'one',
    'id': 'one', 'ms': 'one', 'lo': 'one', 'km': 'one', 'my': 'one',
    'bo': 'one', 'dz': 'one', 'jv': 'one', 'su': 'one',
    # One form for singular, another for everything else including zero
    'en': 'germanic', 'de': 'germanic', 'nl': 'germanic', 'sv': 'germanic',
    'da': 'germanic', 'no': 'germanic', 'nb': 'germanic', 'nn': 'germanic',
    'fo': 'germanic', 'is': 'germanic', 'fy': 'germanic', 'af': 'germanic',
    'es': 'germanic', 'it': 'germanic', 'pt': 'germanic', 'ca': 'germanic',
    'gl': 'germanic', 'eu': 'germanic', 'el': 'germanic', 'bg': 'germanic',
    'fi': 'germanic', 'et': 'germanic', 'hu': 'germanic', 'tr': 'germanic',
    'he': 'germanic', 'eo': 'germanic', 'sq': 'germanic', 'hi': 'germanic',
    'bn': 'germanic', 'ur': 'germanic', 'ta': 'germanic', 'te': 'germanic',
    'mr': 'germanic', 'ml': 'germanic', 'kn': 'germanic', 'sw': 'germanic',
    'az': 'germanic', 'ka': 'germanic', 'mn': 'germanic', 'ne': 'germanic',
    # Zero takes the singular form
    'fr': 'french', 'pt_br': 'french', 'oc': 'french', 'ln': 'french',
    'wa': 'french', 'ti': 'french', 'fil': 'french', 'br': 'french',
    'ru': 'slavic', 'uk': 'slavic', 'be': 'slavic', 'sr': 'slavic',
    'hr': 'slavic', 'bs': 'slavic',
    'cs': 'czech', 'sk': 'czech',
    'pl': 'polish',
    'lt': 'lithuanian',
    'lv': 'latvian',
    'ro': 'romanian', 'mo': 'romanian',
    'sl': 'slovenian',
    'ga': 'irish',
    'ar': 'arabic',
}


@lru_cache(maxsize=None)
def _shape_selector(shape: str) -> PluralSelector:
    selector = compile_plural_forms(_SHAPES[shape])
    assert selector is not None, shape
    return selector


def _normalize_tag(tag: str) -> str:
    tag = tag.strip().split('.')[0].split('@')[0]
    return tag.replace('-', '_').lower()


def language_shape(tag: Optional[str]) -> Optional[str]:
    """Return the name of the plural shape for ``tag``, or ``None``."""
    tag = _normalize_tag(tag or '')
    if tag in LANGUAGE_SHAPES:
        return LANGUAGE_SHAPES[tag]
    return LANGUAGE_SHAPES.get(tag.split('_')[0])


def selector_for_language(tag: Optional[str]) -> PluralSelector:
    """Return the well-known selector for a language tag such as ``pt-BR``.

    Unknown or empty tags fall back to the English rule.
    """
    shape = language_shape(tag)
    if shape is None:
        if tag:
            logger.warning("no plural rule known for language %r, using %s", tag, DEFAULT_SHAPE)
        shape = DEFAULT_SHAPE
    return _shape_selector(shape)
