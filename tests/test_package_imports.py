"""The quota core must stay importable without the web stack."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest


def _forget_package(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in [m for m in list(sys.modules) if m == "accesslimit" or m.startswith("accesslimit.")]:
        monkeypatch.delitem(sys.modules, name)


def test_engine_and_snapshot_import_without_fastapi(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _forget_package(monkeypatch)
    monkeypatch.setitem(sys.modules, "fastapi", None)

    database = importlib.import_module("accesslimit.database")
    quota = importlib.import_module("accesslimit.quota")
    snapshot = importlib.import_module("accesslimit.snapshot")
    timewindow = importlib.import_module("accesslimit.timewindow")

    store = database.Database(tmp_path / "accesslimit.sqlite3")
    store.initialize()
    engine = quota.QuotaEngine(store, snapshot.SecondarySnapshot([]), timewindow.DaytimeWindow(8, 20))

    assert engine.get_users_quota() == {}
    assert "accesslimit.api" not in sys.modules


def test_create_app_is_resolved_on_call(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _forget_package(monkeypatch)
    monkeypatch.setitem(sys.modules, "fastapi", None)

    package = importlib.import_module("accesslimit")
    database = package.Database(tmp_path / "accesslimit.sqlite3")

    with pytest.raises(ImportError):
        package.create_app(database=database)


def test_create_app_builds_engine_from_arguments(tmp_path: Path) -> None:
    import accesslimit
    from accesslimit.config import QuotaSettings
    from accesslimit.quota import QuotaEngine
    from accesslimit.snapshot import SecondarySnapshot

    database = accesslimit.Database(tmp_path / "accesslimit.sqlite3")
    settings = QuotaSettings(quota_limit=2)

    app = accesslimit.create_app(
        database=database,
        snapshot=SecondarySnapshot([]),
        settings=settings,
        initialize_database=True,
    )

    assert isinstance(app.state.engine, QuotaEngine)
    assert app.state.database is database
    assert app.state.settings == settings
    assert database.find_all() == []
