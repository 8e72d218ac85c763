from __future__ import annotations

from typing import Any, Sequence

from ...errors import RowCountMismatchError
from ..executor import Executor
from ..expand import Expander
from ..metadata import RecordMetadata
from ..paramstyle import ParamStyle
from .base import Dialect, IdRecovery, ansi_upsert_statement, assign_ids, check_writable, quote_with


class PostgresDialect(Dialect):
    """PostgreSQL. Generated ids are read back through INSERT ... RETURNING."""

    name = "postgres"
    param_style = ParamStyle.NUMERIC_DOLLAR
    id_recovery = IdRecovery.RETURNING

    def quote_identifier(self, name: str) -> str:
        return quote_with('"', name)

    def build_upsert_statement(
        self, table: str, conflict_keys: Sequence[str], metadata: RecordMetadata
    ) -> str:
        return ansi_upsert_statement(self, table, conflict_keys, metadata)

    def insert(
        self,
        executor: Executor,
        expander: Expander,
        table: str,
        rows: Sequence[Any],
    ) -> list[int]:
        metadata = expander.cache.metadata_for(type(rows[0]))
        check_writable(metadata)
        pk = metadata.primary_key
        query = self.insert_statement(table, metadata)

        if pk is None:
            statement, args = expander.expand(query, [list(rows)], metadata, include_managed=False)
            result = executor.execute(statement, args)
            if result.rows_affected != len(rows):
                raise RowCountMismatchError(len(rows), result.rows_affected)
            return []

        query += f" RETURNING {self.quote_identifier(pk.name)}"
        statement, args = expander.expand(query, [list(rows)], metadata, include_managed=False)
        cursor = executor.query(statement, args)
        try:
            ids = [int(row[0]) for row in cursor]
        finally:
            cursor.close()
        if len(ids) != len(rows):
            raise RowCountMismatchError(len(rows), len(ids))
        assign_ids(metadata, rows, ids)
        return ids
