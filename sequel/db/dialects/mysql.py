from __future__ import annotations

from typing import Sequence

from ..expand import quote_and_join
from ..metadata import RecordMetadata
from ..paramstyle import ParamStyle
from .base import Dialect, IdRecovery, quote_with


class MySQLDialect(Dialect):
    """
    MySQL / MariaDB.

    LAST_INSERT_ID() after a multi-row INSERT is the id of the FIRST row. With
    InnoDB the batch is allocated contiguously for a single statement under
    innodb_autoinc_lock_mode 0 and 1; mode 2 (the 8.0 default) only keeps that
    guarantee while no other session inserts into the table concurrently.
    """

    name = "mysql"
    param_style = ParamStyle.QMARK
    id_recovery = IdRecovery.FIRST_OF_BATCH

    def quote_identifier(self, name: str) -> str:
        return quote_with("`", name)

    def build_upsert_statement(
        self, table: str, conflict_keys: Sequence[str], metadata: RecordMetadata
    ) -> str:
        # ON DUPLICATE KEY fires on any unique key; conflict_keys are implied by the schema
        columns = [f.name for f in metadata.filtered(True)]
        assignments = ", ".join(
            f"{self.quote_identifier(c)}=VALUES({self.quote_identifier(c)})" for c in columns
        )
        return (
            f"INSERT INTO {self.quote_identifier(table)} ({quote_and_join(self, columns)}) "
            f"VALUES ? ON DUPLICATE KEY UPDATE {assignments}"
        )
