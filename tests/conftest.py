from __future__ import annotations

import re
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from sequel.config import MapperConfig
from sequel.db.database import Database
from sequel.db.dialects import make_dialect
from sequel.db.metadata import MetadataCache


@pytest.fixture
def cache() -> MetadataCache:
    return MetadataCache()


@pytest.fixture(params=["mysql", "postgres", "sqlite"])
def dialect(request: pytest.FixtureRequest):
    return make_dialect(request.param)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """A file-backed SQLite database per test; in-memory databases are per-connection."""
    return f"sqlite:///{tmp_path / 'sequel_test.db'}"


@pytest.fixture
def engine(sqlite_url: str) -> Iterator[Engine]:
    eng = create_engine(sqlite_url)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine: Engine) -> Database:
    return Database(engine)


@pytest.fixture
def relaxed_db(engine: Engine) -> Database:
    return Database(engine, MapperConfig(strict=False))


def _sanitize_table_name(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9_]+", "_", name).strip("_").lower()
    if not name:
        name = "t"
    return name[:48]


@pytest.fixture
def table_factory(engine: Engine, request: pytest.FixtureRequest) -> Iterator[Callable[[str], str]]:
    """
    Factory fixture creating per-test tables.

    Usage:
        table = table_factory("id INTEGER PRIMARY KEY, name TEXT NOT NULL")
    """
    created: list[str] = []

    def _create(schema_sql: str) -> str:
        base = _sanitize_table_name(f"t_{request.node.name}")
        table = f"{base}_{uuid.uuid4().hex[:10]}"
        with engine.begin() as conn:
            conn.exec_driver_sql(f"CREATE TABLE `{table}` ({schema_sql})")
        created.append(table)
        return table

    yield _create

    with engine.begin() as conn:
        for table in created:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS `{table}`")


@pytest.fixture
def users_table(table_factory: Callable[[str], str]) -> str:
    """
    A default users table.

    Includes an auto-assigned integer PK (managed by the database) and a
    unique email for upsert conflict tests.
    """
    return table_factory(
        """
        id INTEGER PRIMARY KEY,
        name VARCHAR(128) NOT NULL,
        email VARCHAR(255) NULL UNIQUE,
        age INTEGER NOT NULL DEFAULT 0
        """
    )
