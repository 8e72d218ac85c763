from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.engine import Connection

from .executor import ConnectionExecutor
from .queryable import Queryable

if TYPE_CHECKING:
    from .database import Database


class DbTransaction(Queryable):
    """
    Mapping transaction with explicit commit/rollback methods.

    Offers the same operations as DbSession without context manager
    semantics. The transaction begins on construction and must be explicitly
    committed or rolled back; either closes the connection.

    Usage:
        tx = db.begin()
        try:
            tx.insert("users", user)
            tx.commit()
        except Exception:
            tx.rollback()
            raise
    """

    def __init__(self, database: "Database") -> None:
        super().__init__(database.expander, database.config.strict)
        self.engine = database.engine
        self._closed = False
        self._conn: Connection | None = self.engine.connect()
        self._tx = self._conn.begin()
        self._exec = ConnectionExecutor(self._conn)

    def _executor(self) -> ConnectionExecutor:
        if self._closed:
            raise RuntimeError("Transaction is closed")
        return self._exec

    def commit(self) -> None:
        """
        Commit the transaction and close the connection.

        Raises:
            RuntimeError: If transaction is already closed
        """
        if self._closed:
            raise RuntimeError("Transaction is already closed")
        try:
            self._tx.commit()
        finally:
            self._close()

    def rollback(self) -> None:
        """
        Rollback the transaction and close the connection.

        Raises:
            RuntimeError: If transaction is already closed
        """
        if self._closed:
            raise RuntimeError("Transaction is already closed")
        try:
            self._tx.rollback()
        finally:
            self._close()

    def _close(self) -> None:
        self._closed = True
        if self._conn is not None:
            self._conn.close()
        self._conn = None
        self._tx = None
