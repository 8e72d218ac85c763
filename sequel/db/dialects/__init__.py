from ...errors import UnsupportedDialectError
from .base import Dialect, IdRecovery, recover_ids
from .mysql import MySQLDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect

_DIALECTS: dict[str, type[Dialect]] = {
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
    "sqlite": SQLiteDialect,
    "sqlite3": SQLiteDialect,
}


def make_dialect(name: str) -> Dialect:
    """
    Create the dialect for a database name.

    Accepts SQLAlchemy backend names ("postgresql", "mariadb") as well as the
    short forms.
    """
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise UnsupportedDialectError(name) from None


__all__ = [
    "Dialect",
    "IdRecovery",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "make_dialect",
    "recover_ids",
]
