"""Tests for the command-line user creation helper."""

from __future__ import annotations

from accesslimit.database import Database
from scripts.create_user import main


def test_creates_user_with_configured_quota(tmp_path, monkeypatch, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"
    monkeypatch.setenv("ACCESSLIMIT_QUOTA_LIMIT", "4")

    assert main(["Ada", "Lovelace", "--id", "ada", "--db", str(db_path)]) == 0

    database = Database(db_path)
    user = database.find_by_id("ada")
    assert user is not None
    assert user.quota == 4
    assert "Created user ada" in capsys.readouterr().out


def test_duplicate_id_fails(tmp_path, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"

    assert main(["Ada", "Lovelace", "--id", "ada", "--db", str(db_path)]) == 0
    assert main(["Ada", "Lovelace", "--id", "ada", "--db", str(db_path)]) == 1
    assert "already exists" in capsys.readouterr().err


def test_empty_id_fails(tmp_path, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"

    assert main(["Ada", "Lovelace", "--id", "", "--db", str(db_path)]) == 1
    assert "must not be empty" in capsys.readouterr().err
    assert Database(db_path).find_all() == []
