from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Sequence

from ...errors import ImmutablePrimaryKeyTargetError, RowCountMismatchError
from ..executor import Executor
from ..expand import Expander, quote_and_join
from ..metadata import RecordMetadata
from ..paramstyle import ParamStyle

logger = logging.getLogger(__name__)


class IdRecovery(str, Enum):
    """Where the id reported for a multi-row insert sits in the batch."""

    FIRST_OF_BATCH = "first_of_batch"
    LAST_OF_BATCH = "last_of_batch"
    RETURNING = "returning"


def recover_ids(policy: IdRecovery, reported_id: int, count: int) -> list[int]:
    """
    Reconstruct the ids of a contiguous batch of count rows from the single id
    the driver reports.

        >>> recover_ids(IdRecovery.FIRST_OF_BATCH, 10, 3)
        [10, 11, 12]
        >>> recover_ids(IdRecovery.LAST_OF_BATCH, 12, 3)
        [10, 11, 12]
    """
    if policy is IdRecovery.FIRST_OF_BATCH:
        first = reported_id
    elif policy is IdRecovery.LAST_OF_BATCH:
        first = reported_id - count + 1
    else:
        raise ValueError(f"ids for {policy.value} inserts are read from the result, not recovered")
    return [first + i for i in range(count)]


def assign_ids(metadata: RecordMetadata, rows: Sequence[Any], ids: Sequence[int]) -> None:
    """Write generated ids back onto the primary key field of each row."""
    pk = metadata.primary_key
    if pk is None:
        return
    for row, id_value in zip(rows, ids):
        metadata.set(row, pk, id_value)


class Dialect(ABC):
    """
    SQL syntax rules for one database family.

    Concrete dialects differ in identifier quoting, placeholder style, upsert
    syntax and how generated ids are recovered after a multi-row insert.
    """

    name: str
    param_style: ParamStyle
    id_recovery: IdRecovery

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Quote a table or column identifier."""
        ...

    def placeholder(self, n: int) -> str:
        """Placeholder for the zero-based parameter n."""
        return self.param_style.placeholder(n)

    @abstractmethod
    def build_upsert_statement(
        self, table: str, conflict_keys: Sequence[str], metadata: RecordMetadata
    ) -> str:
        """Build an upsert statement containing exactly one ``?`` for the rows."""
        ...

    def insert_statement(self, table: str, metadata: RecordMetadata) -> str:
        columns = [f.name for f in metadata.filtered(False)]
        return (
            f"INSERT INTO {self.quote_identifier(table)} "
            f"({quote_and_join(self, columns)}) VALUES ?"
        )

    def insert(
        self,
        executor: Executor,
        expander: Expander,
        table: str,
        rows: Sequence[Any],
    ) -> list[int]:
        """
        Insert same-shaped records in one statement and return their generated ids.

        Managed fields are left to the database. When the shape declares a
        primary key each record's key field is set to its generated id.

        Raises:
            ImmutablePrimaryKeyTargetError: If ids can't be written back (frozen records).
            RowCountMismatchError: If the database affected a different number of rows.
        """
        metadata = expander.cache.metadata_for(type(rows[0]))
        check_writable(metadata)
        query = self.insert_statement(table, metadata)
        statement, args = expander.expand(query, [list(rows)], metadata, include_managed=False)
        result = executor.execute(statement, args)
        if result.rows_affected != len(rows):
            raise RowCountMismatchError(len(rows), result.rows_affected)
        if result.last_insert_id is None:
            logger.warning(
                "Driver reported no generated id for INSERT into %s; ids not recovered", table
            )
            return []
        ids = recover_ids(self.id_recovery, int(result.last_insert_id), len(rows))
        assign_ids(metadata, rows, ids)
        return ids


def check_writable(metadata: RecordMetadata) -> None:
    pk = metadata.primary_key
    if pk is not None and not pk.writable:
        raise ImmutablePrimaryKeyTargetError(metadata.shape)


def ansi_upsert_statement(
    dialect: Dialect,
    table: str,
    conflict_keys: Sequence[str],
    metadata: RecordMetadata,
) -> str:
    columns = [f.name for f in metadata.filtered(True)]
    assignments = ", ".join(
        f"{dialect.quote_identifier(c)} = EXCLUDED.{dialect.quote_identifier(c)}" for c in columns
    )
    return (
        f"INSERT INTO {dialect.quote_identifier(table)} ({quote_and_join(dialect, columns)}) "
        f"VALUES ? ON CONFLICT ({quote_and_join(dialect, conflict_keys)}) "
        f"DO UPDATE SET {assignments}"
    )


def quote_with(char: str, name: str) -> str:
    return char + name.replace(char, char * 2) + char
