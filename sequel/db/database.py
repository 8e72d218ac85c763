from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ..config import MapperConfig
from .dialects import Dialect, make_dialect
from .expand import Expander
from .metadata import MetadataCache
from .models import Expansion
from .paramstyle import ParamStyle
from .session import DbSession
from .tx import DbTransaction

logger = logging.getLogger(__name__)


class Database:
    """
    Record mapping over a SQLAlchemy Engine.

    Owns the dialect and the record metadata cache shared by every session
    and transaction it hands out.

    Usage:
        db = Database.open("sqlite:///app.db")
        with db.session() as session:
            session.insert("users", User(name="Moe"))
            users = session.select(User, "SELECT ** FROM users ORDER BY name")
    """

    def __init__(self, engine: Engine, config: Optional[MapperConfig] = None) -> None:
        self.engine = engine
        self.config = config or MapperConfig()
        self.dialect: Dialect = make_dialect(self.config.dialect or engine.dialect.name)
        self.paramstyle = ParamStyle.from_dbapi(
            self.config.paramstyle or engine.dialect.paramstyle
        )
        self.metadata = MetadataCache()
        self.expander = Expander(self.dialect, self.metadata, self.paramstyle)
        logger.debug(
            "Mapping %s with %r (paramstyle %s, strict=%s)",
            engine.url.render_as_string(hide_password=True),
            self.dialect,
            self.paramstyle,
            self.config.strict,
        )

    @classmethod
    def open(cls, url: str, config: Optional[MapperConfig] = None, **engine_kwargs: Any) -> "Database":
        """Create the engine for url and wrap it."""
        return cls(create_engine(url, **engine_kwargs), config)

    def session(self) -> DbSession:
        return DbSession(self)

    def begin(self) -> DbTransaction:
        """
        Begin a new transaction.

        Returns:
            A new DbTransaction with an active transaction
        """
        return DbTransaction(self)

    def expand(self, query: str, *args: Any) -> Expansion:
        """
        Expand query and args in the dialect's own placeholder style.

        The result is independent of the driver; use it with any client that
        accepts the dialect's placeholders.
        """
        return Expander(self.dialect, self.metadata).expand(query, args)

    def close(self) -> None:
        self.engine.dispose()
