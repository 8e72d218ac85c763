from .config import MapperConfig
from .db import Database, DbSession, DbTransaction, column, embed

__all__ = ["Database", "DbSession", "DbTransaction", "MapperConfig", "column", "embed"]
