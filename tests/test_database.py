from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from accesslimit.database import Database


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db_path = tmp_path / "accesslimit.sqlite3"
    db = Database(db_path)
    db.initialize()
    return db


def test_create_and_find_user(database: Database) -> None:
    user = database.create_user("John", "Doe", quota=5)

    retrieved = database.find_by_id(user.id)
    assert retrieved == user
    assert retrieved is not None
    assert retrieved.quota == 5
    assert retrieved.last_login_time_utc.tzinfo is not None


def test_create_user_with_explicit_id(database: Database) -> None:
    user = database.create_user("Jane", "Smith", quota=2, user_id="u1")
    assert user.id == "u1"

    with pytest.raises(ValueError):
        database.create_user("Other", "Person", quota=2, user_id="u1")


def test_create_user_requires_names(database: Database) -> None:
    with pytest.raises(ValueError):
        database.create_user("  ", "Doe", quota=5)


def test_save_overwrites_existing_record(database: Database) -> None:
    user = database.create_user("John", "Doe", quota=5)

    saved = database.save(replace(user, quota=4))

    assert saved.quota == 4
    assert database.find_by_id(user.id) == saved


def test_save_inserts_unknown_record(database: Database) -> None:
    user = database.create_user("John", "Doe", quota=5)
    database.delete_by_id(user.id)
    assert database.find_by_id(user.id) is None

    database.save(user)
    assert database.find_by_id(user.id) == user


def test_update_user_keeps_quota(database: Database) -> None:
    user = database.create_user("Existing", "Name", quota=7)

    updated = database.update_user(user.id, first_name="Updated", last_name="Person")

    assert updated is not None
    assert updated.first_name == "Updated"
    assert updated.last_name == "Person"
    assert updated.quota == 7


def test_update_missing_user_returns_none(database: Database) -> None:
    assert database.update_user("missing", first_name="A", last_name="B") is None


def test_find_all_and_delete(database: Database) -> None:
    first = database.create_user("A", "One", quota=1)
    second = database.create_user("B", "Two", quota=2)

    assert [user.id for user in database.find_all()] == [first.id, second.id]

    database.delete_by_id(first.id)
    database.delete_by_id("never-existed")
    assert [user.id for user in database.find_all()] == [second.id]


def test_get_user_reads_from_store(database: Database) -> None:
    user = database.create_user("Ada", "Lovelace", quota=3, user_id="ada")

    assert database.get_user("ada") == user
    assert database.get_user("missing") is None


def test_create_user_rejects_empty_id(database: Database) -> None:
    with pytest.raises(ValueError):
        database.create_user("Ada", "Lovelace", quota=3, user_id="")

    assert database.find_all() == []
