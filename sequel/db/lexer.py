from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple

from ..errors import UnterminatedQuoteError


class TokenKind(str, Enum):
    TEXT = "text"
    QUOTED = "quoted"
    PLACEHOLDER = "placeholder"
    WILDCARD = "wildcard"


class Token(NamedTuple):
    kind: TokenKind
    text: str
    position: int


# Quoted spans allow backslash escapes, and a backslash that escapes nothing
# ('C:\') is an ordinary character. A doubled quote ('it''s') lexes as two
# adjacent spans, which is equivalent since both are copied verbatim.
_TOKEN_RE = re.compile(
    r"""
    (?P<placeholder>\?)
  | (?P<wildcard>\*\*)
  | (?P<quoted>'(?:\\.|[^'])*'|"(?:\\.|[^"])*"|`(?:\\.|[^`])*`)
  | (?P<quote>['"`])
  | (?P<text>[^?*'"`]+|\*)
    """,
    re.VERBOSE | re.DOTALL,
)


def tokenize(text: str) -> list[Token]:
    """
    Split statement text into literal text, quoted spans and placeholders.

    Placeholders are never recognised inside quoted spans. A single ``*`` is
    plain text; ``**`` is the column wildcard.

    Raises:
        UnterminatedQuoteError: If a quote is opened but never closed.
    """
    tokens: list[Token] = []
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        start = match.start()
        if kind == "quote":
            raise UnterminatedQuoteError(start, match.group())
        if kind == "text" and tokens and tokens[-1].kind is TokenKind.TEXT:
            prev = tokens[-1]
            tokens[-1] = Token(TokenKind.TEXT, prev.text + match.group(), prev.position)
            continue
        tokens.append(Token(TokenKind(kind), match.group(), start))
    return tokens
