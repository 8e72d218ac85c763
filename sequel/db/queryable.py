from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional, Sequence, TypeVar

from ..errors import MissingPrimaryKeyError, MultipleRowsError, NoRowsError
from .executor import Executor, Rows
from .expand import Expander
from .metadata import RecordMetadata
from .metrics import observe_statement, statement_operation
from .models import ExecResult, Expansion

if TYPE_CHECKING:
    from .dialects.base import Dialect

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Queryable(ABC):
    """
    Mapping operations over one executor.

    Shared by DbSession and DbTransaction; subclasses own the connection and
    provide the executor.
    """

    def __init__(self, expander: Expander, strict: bool = True) -> None:
        self.expander = expander
        self.strict = strict

    @property
    def dialect(self) -> "Dialect":
        return self.expander.dialect

    @abstractmethod
    def _executor(self) -> Executor:
        """The executor for the connection this object currently owns."""
        ...

    @contextmanager
    def _observe(self, statement: str) -> Iterator[None]:
        start = time.monotonic()
        status = "success"
        try:
            yield
        except Exception:
            status = "error"
            raise
        finally:
            observe_statement(
                dialect=self.dialect.name,
                operation=statement_operation(statement),
                status=status,
                latency_s=time.monotonic() - start,
            )

    def expand(self, query: str, *args: Any) -> Expansion:
        """Expand query and args into driver-ready statement text and arguments."""
        return self.expander.expand(query, args)

    def execute(self, query: str, *args: Any) -> ExecResult:
        """
        Expand and execute a statement, returning affected rows and the generated id.

        ``**`` has no record to draw columns from here and is written as ``*``.
        """
        statement, bound = self.expander.expand(query, args)
        logger.debug("Executing %s with %d argument(s)", statement, len(bound))
        with self._observe(statement):
            return self._executor().execute(statement, bound)

    def select(self, shape: type[T], query: str, *args: Any) -> list[T]:
        """
        Run a query and map every row onto a new ``shape`` record.

        In strict mode the result columns must match the record's columns
        one-to-one.

        Raises:
            ColumnMappingMismatchError: If strict and columns and fields differ.
        """
        metadata = self.expander.cache.metadata_for(shape)
        rows = self._query(metadata, query, args)
        try:
            plan = metadata.scan_plan(rows.columns(), self.strict)
            return [plan.build(row) for row in rows]
        finally:
            rows.close()

    def select_one(self, shape: type[T], query: str, *args: Any) -> Optional[T]:
        """
        Run a query expected to return 0 or 1 row. Raises if more than one row.

        Returns:
            The mapped record, or None if no row matched.
        """
        metadata = self.expander.cache.metadata_for(shape)
        rows = self._query(metadata, query, args)
        try:
            plan = metadata.scan_plan(rows.columns(), self.strict)
            found: Optional[T] = None
            for count, row in enumerate(rows):
                if count > 0:
                    raise MultipleRowsError(query)
                found = plan.build(row)
            return found
        finally:
            rows.close()

    def select_scalar(self, query: str, *args: Any) -> Any:
        """
        Run a query and return the first column of its first row.

        Raises:
            NoRowsError: If the query returned no row.
        """
        statement, bound = self.expander.expand(query, args)
        with self._observe(statement):
            row = self._executor().query_row(statement, bound)
        if row is None:
            raise NoRowsError(query)
        return row[0]

    def select_int(self, query: str, *args: Any) -> int:
        return int(self.select_scalar(query, *args))

    def select_str(self, query: str, *args: Any) -> str:
        return str(self.select_scalar(query, *args))

    def insert(self, table: str, *rows: Any) -> list[int]:
        """
        Insert records and return their generated ids.

        Pass records as separate arguments or as one list. Generated ids are
        written back onto each record's primary key field.
        """
        records = _mutation_rows(rows)
        statement = f"INSERT INTO {table}"
        with self._observe(statement):
            return self.dialect.insert(self._executor(), self.expander, table, records)

    def upsert(self, table: str, *rows: Any, keys: Optional[Sequence[str]] = None) -> ExecResult:
        """
        Insert records, updating existing rows that conflict on ``keys``.

        keys defaults to the record's primary key column.

        Raises:
            MissingPrimaryKeyError: If no keys are given and the record has no primary key.
        """
        records = _mutation_rows(rows)
        metadata = self.expander.cache.metadata_for(type(records[0]))
        if not keys:
            if metadata.primary_key is None:
                raise MissingPrimaryKeyError(metadata.shape, table)
            keys = [metadata.primary_key.name]
        query = self.dialect.build_upsert_statement(table, keys, metadata)
        statement, bound = self.expander.expand(query, [records], metadata)
        logger.debug("Upserting %d row(s) into %s", len(records), table)
        with self._observe(statement):
            return self._executor().execute(statement, bound)

    def _query(self, metadata: RecordMetadata, query: str, args: Sequence[Any]) -> Rows:
        statement, bound = self.expander.expand(query, args, metadata)
        logger.debug("Querying %s with %d argument(s)", statement, len(bound))
        with self._observe(statement):
            return self._executor().query(statement, bound)


def _mutation_rows(rows: Sequence[Any]) -> list[Any]:
    if len(rows) == 1 and isinstance(rows[0], (list, tuple)):
        rows = rows[0]
    if not rows:
        raise ValueError("no rows to write")
    shape = type(rows[0])
    for row in rows[1:]:
        if type(row) is not shape:
            raise TypeError(
                f"all rows must share one record type; got {shape.__qualname__} "
                f"and {type(row).__qualname__}"
            )
    return list(rows)
