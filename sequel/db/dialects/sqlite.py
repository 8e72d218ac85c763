from __future__ import annotations

from typing import Sequence

from ..metadata import RecordMetadata
from ..paramstyle import ParamStyle
from .base import Dialect, IdRecovery, ansi_upsert_statement, quote_with


class SQLiteDialect(Dialect):
    """SQLite. last_insert_rowid() after a multi-row INSERT is the LAST row's id."""

    name = "sqlite"
    param_style = ParamStyle.QMARK
    id_recovery = IdRecovery.LAST_OF_BATCH

    def quote_identifier(self, name: str) -> str:
        return quote_with("`", name)

    def build_upsert_statement(
        self, table: str, conflict_keys: Sequence[str], metadata: RecordMetadata
    ) -> str:
        return ansi_upsert_statement(self, table, conflict_keys, metadata)
