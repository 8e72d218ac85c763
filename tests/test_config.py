from __future__ import annotations

import pytest
from sqlalchemy import create_engine

from sequel.config import MapperConfig
from sequel.db.database import Database
from sequel.db.dialects import MySQLDialect, SQLiteDialect
from sequel.db.paramstyle import ParamStyle


def test_defaults() -> None:
    config = MapperConfig()
    assert config.dialect is None
    assert config.strict is True
    assert config.paramstyle is None


def test_rejects_unknown_dialect() -> None:
    with pytest.raises(ValueError, match="dialect must be one of"):
        MapperConfig(dialect="oracle")


def test_rejects_unknown_paramstyle() -> None:
    with pytest.raises(ValueError, match="paramstyle must be one of"):
        MapperConfig(paramstyle="named")


def test_database_uses_engine_dialect_by_default(engine) -> None:
    db = Database(engine)
    assert isinstance(db.dialect, SQLiteDialect)
    assert db.expander.paramstyle is ParamStyle.QMARK


def test_config_overrides_engine_dialect(engine) -> None:
    db = Database(engine, MapperConfig(dialect="mysql", paramstyle="format"))
    assert isinstance(db.dialect, MySQLDialect)
    assert db.expander.paramstyle is ParamStyle.FORMAT
    # The public expansion stays in the dialect's own placeholder style.
    assert db.expand("SELECT * FROM t WHERE a = ? AND b LIKE '5%'", 1).statement == (
        "SELECT * FROM t WHERE a = ? AND b LIKE '5%'"
    )


def test_open_builds_engine(sqlite_url: str) -> None:
    db = Database.open(sqlite_url, MapperConfig(strict=False))
    try:
        assert db.config.strict is False
        with db.session() as session:
            assert session.select_int("SELECT 1") == 1
    finally:
        db.close()
