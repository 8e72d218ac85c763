from __future__ import annotations

from typing import Any, Iterator, Optional, Protocol, Sequence

from sqlalchemy.engine import Connection, CursorResult

from .models import ExecResult


class Rows(Protocol):
    """A result cursor: column names, then rows as positional sequences."""

    def columns(self) -> list[str]:
        ...

    def __iter__(self) -> Iterator[Sequence[Any]]:
        ...

    def close(self) -> None:
        ...


class Executor(Protocol):
    """
    Protocol for running already-expanded statements.

    Statements arrive with placeholders in the driver's own style and a flat
    list of positional arguments.
    """

    def execute(self, statement: str, args: Sequence[Any]) -> ExecResult:
        """Execute a statement and report affected rows and the generated id."""
        ...

    def query(self, statement: str, args: Sequence[Any]) -> Rows:
        """Execute a statement and return its result cursor."""
        ...

    def query_row(self, statement: str, args: Sequence[Any]) -> Optional[Sequence[Any]]:
        """Execute a statement and return its first row, or None."""
        ...


class CursorRows:
    """Rows over a SQLAlchemy CursorResult."""

    def __init__(self, result: CursorResult) -> None:
        self._result = result

    def columns(self) -> list[str]:
        return list(self._result.keys())

    def __iter__(self) -> Iterator[Sequence[Any]]:
        return iter(self._result)

    def close(self) -> None:
        self._result.close()


class ConnectionExecutor:
    """
    Executor over a SQLAlchemy Connection.

    Uses exec_driver_sql() so statements reach the DB-API cursor unchanged;
    arguments are passed as one positional tuple.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def execute(self, statement: str, args: Sequence[Any]) -> ExecResult:
        result = self.conn.exec_driver_sql(statement, tuple(args))
        try:
            if result.rowcount is None:
                raise RuntimeError(
                    "execute() received None rowcount for statement. "
                    "This may indicate a DDL statement or unsupported operation type."
                )
            rows_affected = int(result.rowcount)
            last_insert_id = result.lastrowid if _is_insert(statement) else None
        finally:
            result.close()
        return ExecResult(
            rows_affected=rows_affected,
            last_insert_id=None if last_insert_id is None else int(last_insert_id),
        )

    def query(self, statement: str, args: Sequence[Any]) -> CursorRows:
        return CursorRows(self.conn.exec_driver_sql(statement, tuple(args)))

    def query_row(self, statement: str, args: Sequence[Any]) -> Optional[Sequence[Any]]:
        result = self.conn.exec_driver_sql(statement, tuple(args))
        try:
            return result.first()
        finally:
            result.close()


def _is_insert(statement: str) -> bool:
    return statement.lstrip()[:6].upper() in ("INSERT", "REPLAC")
