from .database import Database
from .dialects import Dialect, IdRecovery, make_dialect
from .expand import Expander, expand
from .lexer import Token, TokenKind, tokenize
from .metadata import ColumnValue, Field, MetadataCache, RecordMetadata, column, embed
from .models import ExecResult, Expansion
from .paramstyle import ParamStyle
from .session import DbSession
from .tx import DbTransaction

__all__ = [
    "Database",
    "DbSession",
    "DbTransaction",
    "Dialect",
    "IdRecovery",
    "make_dialect",
    "Expander",
    "expand",
    "Token",
    "TokenKind",
    "tokenize",
    "ColumnValue",
    "Field",
    "MetadataCache",
    "RecordMetadata",
    "column",
    "embed",
    "ExecResult",
    "Expansion",
    "ParamStyle",
]
