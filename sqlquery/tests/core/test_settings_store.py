# python -m pytest sqlquery/tests/core/test_settings_store.py -v

import asyncio
import json

import pytest

from sqlquery.core import settings_store
from sqlquery.core.settings_store import (
    SQLQUERY_EXTENSION_KEY,
    WEATHER_EXTENSION_KEY,
    ConnectionSettings,
    SettingsStore,
    WeatherSettings,
)


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestLoad:
    """Init-on-first-use and non-destructive default merge"""

    def test_first_use_initializes_defaults(self, tmp_path):
        store = SettingsStore(str(tmp_path / "s.json"), SQLQUERY_EXTENSION_KEY, ConnectionSettings)

        loaded = store.load()

        assert loaded.model_dump() == {"host": "", "user": "", "password": "", "database": "", "port": ""}

    def test_missing_key_added_without_touching_existing(self, tmp_path):
        path = tmp_path / "s.json"
        _write(path, {"sqlquery": {"host": "db.internal", "user": "analyst", "password": "pw", "database": "dw"}})
        store = SettingsStore(str(path), SQLQUERY_EXTENSION_KEY, ConnectionSettings)

        loaded = store.load()

        assert loaded.port == ""
        assert loaded.host == "db.internal"
        assert loaded.user == "analyst"
        assert loaded.password == "pw"
        assert loaded.database == "dw"

    def test_unknown_persisted_keys_survive(self, tmp_path):
        path = tmp_path / "s.json"
        _write(path, {"sqlquery": {"host": "h", "legacy_flag": "1"}})
        store = SettingsStore(str(path), SQLQUERY_EXTENSION_KEY, ConnectionSettings)

        store.load()
        store.save()

        assert _read(path)["sqlquery"]["legacy_flag"] == "1"

    def test_non_string_values_are_coerced(self, tmp_path):
        path = tmp_path / "s.json"
        _write(path, {"sqlquery": {"host": "h", "port": 5432, "password": None}})
        store = SettingsStore(str(path), SQLQUERY_EXTENSION_KEY, ConnectionSettings)

        loaded = store.load()

        assert loaded.port == "5432"
        assert loaded.password == ""
        assert loaded.host == "h"

    def test_weather_defaults(self, tmp_path):
        store = SettingsStore(str(tmp_path / "s.json"), WEATHER_EXTENSION_KEY, WeatherSettings)
        assert store.load().model_dump() == {"apiKey": "", "preferredLocation": "", "units": ""}


class TestUpdateAndSave:
    def test_update_outside_loop_saves_immediately(self, tmp_path):
        path = tmp_path / "s.json"
        store = SettingsStore(str(path), SQLQUERY_EXTENSION_KEY, ConnectionSettings)

        store.update("port", 5432)

        assert _read(path)["sqlquery"]["port"] == "5432"

    def test_save_keeps_other_extensions(self, tmp_path):
        path = tmp_path / "s.json"
        _write(path, {"weather": {"apiKey": "k", "preferredLocation": "Dublin", "units": "metric"}})
        store = SettingsStore(str(path), SQLQUERY_EXTENSION_KEY, ConnectionSettings)

        store.update("host", "db")

        data = _read(path)
        assert data["weather"]["preferredLocation"] == "Dublin"
        assert data["sqlquery"]["host"] == "db"

    def test_unknown_field_rejected(self, tmp_path):
        store = SettingsStore(str(tmp_path / "s.json"), SQLQUERY_EXTENSION_KEY, ConnectionSettings)
        with pytest.raises(KeyError):
            store.update("hostname", "db")

    def test_none_stored_as_empty_string(self, tmp_path):
        store = SettingsStore(str(tmp_path / "s.json"), SQLQUERY_EXTENSION_KEY, ConnectionSettings)
        store.update("host", "db")
        assert store.update("host", None).host == ""

    @pytest.mark.asyncio
    async def test_debounced_save_coalesces_edits(self, tmp_path):
        path = tmp_path / "s.json"
        store = SettingsStore(str(path), SQLQUERY_EXTENSION_KEY, ConnectionSettings, debounce_seconds=0.05)

        store.update("host", "d")
        store.update("host", "db")
        store.update("host", "db1")
        assert not path.exists()

        await asyncio.sleep(0.2)

        assert _read(path)["sqlquery"]["host"] == "db1"

    @pytest.mark.asyncio
    async def test_flush_writes_pending_change(self, tmp_path):
        path = tmp_path / "s.json"
        store = SettingsStore(str(path), SQLQUERY_EXTENSION_KEY, ConnectionSettings, debounce_seconds=60)

        store.update("user", "analyst")
        await store.flush()

        assert _read(path)["sqlquery"]["user"] == "analyst"

    @pytest.mark.asyncio
    async def test_failed_debounced_save_is_logged(self, tmp_path, monkeypatch):
        logged = []
        monkeypatch.setattr(
            settings_store.SmartLogger,
            "log",
            lambda level, message, **kwargs: logged.append((level, message, kwargs)),
        )
        store = SettingsStore(str(tmp_path / "s.json"), SQLQUERY_EXTENSION_KEY, ConnectionSettings, debounce_seconds=0)

        def broken_save():
            raise OSError("disk full")

        monkeypatch.setattr(store, "save", broken_save)
        store.update("host", "db")
        await asyncio.sleep(0.05)

        failures = [entry for entry in logged if entry[1] == "settings.save.failed"]
        assert len(failures) == 1
        assert failures[0][0] == "ERROR"
        assert "disk full" in failures[0][2]["params"]["error"]
