from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine

from sequel.db.database import Database

# Server URLs, e.g. mysql+pymysql://root@localhost/sequel_test or
# postgresql+psycopg2://localhost/sequel_test
URL_ENV = {
    "mysql": "SEQUEL_TEST_MYSQL_URL",
    "postgres": "SEQUEL_TEST_POSTGRES_URL",
}

CREATE_USERS = {
    "sqlite": "CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR(128) NOT NULL)",
    "mysql": "CREATE TABLE users (id INTEGER PRIMARY KEY AUTO_INCREMENT, name VARCHAR(128) NOT NULL)",
    "postgres": "CREATE TABLE users (id SERIAL PRIMARY KEY, name VARCHAR(128) NOT NULL)",
}


def _markexpr_allows(config: pytest.Config, marker_name: str) -> bool:
    """Return True if the user's `-m` expression mentions marker_name."""
    expr = getattr(config.option, "markexpr", "") or ""
    return marker_name in expr


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly selected with `-m integration`."""
    if _markexpr_allows(config, "integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Skipped: run with `pytest -m integration` to execute live database tests."
    )
    for item in items:
        if item.get_closest_marker("integration") is not None:
            item.add_marker(skip_integration)


def _url_for(driver: str, tmp_path: Path) -> str:
    if driver == "sqlite":
        return f"sqlite:///{tmp_path / 'sqlite_integration_test.db'}"
    url = os.environ.get(URL_ENV[driver])
    if not url:
        pytest.skip(f"{URL_ENV[driver]} is not set")
    return url


@pytest.fixture(params=["sqlite", "mysql", "postgres"])
def live_db(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[Database]:
    """A Database with a fresh users table on each configured server."""
    driver = request.param
    engine = create_engine(_url_for(driver, tmp_path))
    with engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE IF EXISTS users")
        conn.exec_driver_sql(CREATE_USERS[driver])
    db = Database(engine)
    try:
        yield db
    finally:
        with engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE IF EXISTS users")
        db.close()
