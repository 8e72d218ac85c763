from __future__ import annotations

from dataclasses import dataclass

import pytest

from sequel.db.database import Database
from sequel.db.metadata import column

pytestmark = pytest.mark.integration


@dataclass
class User:
    id: int = column("id,pk,managed", default=0)
    name: str = ""


def _insert_slice(db: Database) -> list[User]:
    users = [User(name="Alice"), User(name="Bob")]
    with db.session() as session:
        ids = session.insert("users", users)
    assert len(ids) == 2
    assert ids == [users[0].id, users[1].id]
    return users


def test_insert_one(live_db: Database) -> None:
    user = User(name="Bob")
    with live_db.session() as session:
        ids = session.insert("users", user)
    assert ids == [user.id]


def test_insert_slice(live_db: Database) -> None:
    _insert_slice(live_db)


def test_select_one(live_db: Database) -> None:
    _insert_slice(live_db)
    with live_db.session() as session:
        user = session.select_one(User, "SELECT ** FROM users WHERE name = ?", "Alice")
    assert user is not None
    assert user.name == "Alice"


def test_select(live_db: Database) -> None:
    expected = _insert_slice(live_db)
    with live_db.session() as session:
        users = session.select(User, "SELECT ** FROM users ORDER BY name")
    assert users == expected


def test_upsert(live_db: Database) -> None:
    users = _insert_slice(live_db)
    users[0].name = "Alex"
    with live_db.session() as session:
        session.upsert("users", users[0], keys=["id"])
        actual = session.select(User, "SELECT ** FROM users ORDER BY name")
    assert actual == users


def test_commit_or_rollback(live_db: Database) -> None:
    with pytest.raises(RuntimeError):
        with live_db.session() as session:
            session.execute("INSERT INTO users (name) VALUES (?)", "Larry")
            raise RuntimeError("error")

    tx = live_db.begin()
    tx.execute("INSERT INTO users (name) VALUES (?)", "Larry")
    tx.commit()

    with live_db.session() as session:
        assert session.select_int("SELECT COUNT(*) FROM users") == 1
