from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Sequence

from ..errors import PlaceholderOutOfRangeError, UnsupportedParameterError
from .lexer import TokenKind, tokenize
from .metadata import SCALAR_TYPES, MetadataCache, RecordMetadata
from .models import Expansion
from .paramstyle import ParamStyle

if TYPE_CHECKING:
    from .dialects.base import Dialect

logger = logging.getLogger(__name__)


class Expander:
    """
    Rewrites ``?`` and ``**`` in statement text for one dialect.

    Each ``?`` consumes the next bound argument and expands it recursively:
    scalars and None become one placeholder, lists and tuples become their
    comma-joined elements, and dataclass records become a parenthesized group
    of their column values. ``**`` becomes the quoted column list of the
    given metadata, or ``*`` without metadata.

    Placeholders are rendered in ``paramstyle`` when given (the style the
    driver accepts), otherwise in the dialect's own style.

        >>> expander.expand("INSERT INTO user (name, age) VALUES ?", [User("Moe", 39)])
        Expansion(statement='INSERT INTO user (name, age) VALUES ($1, $2)', args=['Moe', 39])
    """

    def __init__(
        self,
        dialect: "Dialect",
        cache: MetadataCache,
        paramstyle: Optional[ParamStyle] = None,
    ) -> None:
        self.dialect = dialect
        self.cache = cache
        self.paramstyle = paramstyle

    def placeholder(self, n: int) -> str:
        if self.paramstyle is None:
            return self.dialect.placeholder(n)
        return self.paramstyle.placeholder(n)

    def expand(
        self,
        query: str,
        args: Sequence[Any],
        metadata: Optional[RecordMetadata] = None,
        include_managed: bool = True,
    ) -> Expansion:
        """
        Expand query and args.

        Raises:
            PlaceholderOutOfRangeError: If a ``?`` has no bound argument left.
            UnsupportedParameterError: If an argument cannot be expanded.
            UnterminatedQuoteError: If the query has an unclosed quote.
        """
        escape = self.paramstyle is not None and self.paramstyle.escapes_percent
        parts: list[str] = []
        out: list[Any] = []
        consumed = 0
        for token in tokenize(query):
            if token.kind is TokenKind.PLACEHOLDER:
                if consumed >= len(args):
                    raise PlaceholderOutOfRangeError(consumed + 1, len(args))
                self._expand_value(args[consumed], parts, out, include_managed, nested=False)
                consumed += 1
            elif token.kind is TokenKind.WILDCARD:
                if metadata is None:
                    parts.append("*")
                else:
                    parts.append(self.column_list(metadata, include_managed))
            elif escape:
                parts.append(token.text.replace("%", "%%"))
            else:
                parts.append(token.text)

        if consumed < len(args):
            logger.debug("%d bound argument(s) unused by %r", len(args) - consumed, query)
        return Expansion("".join(parts), out)

    def column_list(self, metadata: RecordMetadata, include_managed: bool) -> str:
        return quote_and_join(self.dialect, [f.name for f in metadata.filtered(include_managed)])

    def _bind(self, value: Any, parts: list[str], out: list[Any]) -> None:
        parts.append(self.placeholder(len(out)))
        out.append(value)

    def _expand_value(
        self,
        value: Any,
        parts: list[str],
        out: list[Any],
        include_managed: bool,
        nested: bool,
    ) -> None:
        if value is None:
            self._bind(None, parts, out)
        elif hasattr(value, "to_db") and not isinstance(value, type):
            self._bind(value.to_db(), parts, out)
        elif isinstance(value, Enum):
            self._bind(value.value, parts, out)
        elif isinstance(value, SCALAR_TYPES):
            self._bind(value, parts, out)
        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            metadata = self.cache.metadata_for(type(value))
            parts.append("(")
            for i, field in enumerate(metadata.filtered(include_managed)):
                if i > 0:
                    parts.append(", ")
                self._expand_value(metadata.get(value, field), parts, out, include_managed, nested=True)
            parts.append(")")
        elif isinstance(value, (list, tuple)):
            if nested:
                parts.append("(")
            for i, element in enumerate(value):
                if i > 0:
                    parts.append(", ")
                self._expand_value(element, parts, out, include_managed, nested=True)
            if nested:
                parts.append(")")
        else:
            raise UnsupportedParameterError(value)


def quote_and_join(dialect: "Dialect", names: Sequence[str]) -> str:
    return ", ".join(dialect.quote_identifier(name) for name in names)


def expand(
    dialect: "Dialect",
    cache: MetadataCache,
    query: str,
    args: Sequence[Any],
    metadata: Optional[RecordMetadata] = None,
    include_managed: bool = True,
) -> Expansion:
    """Expand query and args in the dialect's own placeholder style."""
    return Expander(dialect, cache).expand(query, args, metadata, include_managed)
