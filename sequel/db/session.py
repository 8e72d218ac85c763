from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.engine import Connection

from .executor import ConnectionExecutor
from .queryable import Queryable

if TYPE_CHECKING:
    from .database import Database


class DbSession(Queryable):
    """
    Transactional mapping session over one SQLAlchemy connection.

    Use as:
        with db.session() as session:
            ids = session.insert("users", users)
            user = session.select_one(User, "SELECT ** FROM users WHERE id = ?", ids[0])

    Commits on clean exit, rolls back if the block raises, and always closes
    the connection.
    """

    def __init__(self, database: "Database") -> None:
        super().__init__(database.expander, database.config.strict)
        self.engine = database.engine
        self._conn: Connection | None = None
        self._tx = None
        self._exec: ConnectionExecutor | None = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        self._conn = self.engine.connect()
        self._tx = self._conn.begin()
        self._exec = ConnectionExecutor(self._conn)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    self._tx.rollback()
                else:
                    self._tx.commit()
        finally:
            if self._conn is not None:
                self._conn.close()

            self._conn = None
            self._tx = None
            self._exec = None

        # propagate exceptions (if any)
        return False

    def _executor(self) -> ConnectionExecutor:
        if self._exec is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._exec
