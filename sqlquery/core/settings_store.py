"""
Persisted extension settings.

Each extension owns one object under its key in a shared JSON file. Loading
initializes the object on first use and merges defaults key by key, so fields
introduced later never clobber values that were already persisted.
"""
from __future__ import annotations

import asyncio
import json
import os
import tempfile
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

from sqlquery.core.log_sanitize import sanitize_for_log
from sqlquery.smart_logger import SmartLogger


class _StringSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    @field_validator("*", mode="before")
    @classmethod
    def _as_string(cls, value: Any) -> Any:
        # Hand-edited files may hold numbers or nulls.
        if value is None:
            return ""
        if not isinstance(value, str):
            return str(value)
        return value


class ConnectionSettings(_StringSettings):
    """Direct database connection parameters"""

    host: str = ""
    user: str = ""
    password: str = ""
    database: str = ""
    port: str = ""

    def missing_required(self) -> list[str]:
        return [name for name in ("host", "user", "database") if not getattr(self, name).strip()]


class WeatherSettings(_StringSettings):
    """Weather provider parameters"""

    apiKey: str = ""
    preferredLocation: str = ""
    units: str = ""


SQLQUERY_EXTENSION_KEY = "sqlquery"
WEATHER_EXTENSION_KEY = "weather"

ModelT = TypeVar("ModelT", bound=BaseModel)


class SettingsStore(Generic[ModelT]):
    """Load / merge-defaults / save lifecycle for one extension's settings"""

    def __init__(
        self,
        path: str,
        key: str,
        model: Type[ModelT],
        *,
        debounce_seconds: float = 1.0,
    ):
        self.path = path
        self.key = key
        self.model = model
        self.debounce_seconds = debounce_seconds
        self._current: Optional[ModelT] = None
        self._pending_save: Optional[asyncio.Task] = None

    def _read_file(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def load(self) -> ModelT:
        """Read the persisted object and add any missing default keys."""
        stored = self._read_file().get(self.key)
        if not isinstance(stored, dict):
            stored = {}

        merged = dict(stored)
        added = []
        for name, value in self.model().model_dump().items():
            if name not in merged:
                merged[name] = value
                added.append(name)

        self._current = self.model.model_validate(merged)
        SmartLogger.log(
            "INFO",
            "settings.load",
            category="settings.store",
            params={"key": self.key, "added_defaults": added},
        )
        return self._current

    def get(self) -> ModelT:
        if self._current is None:
            return self.load()
        return self._current

    def update(self, field: str, value: Any) -> ModelT:
        """Set one field (stored as a string) and schedule a debounced save."""
        current = self.get()
        if field not in self.model.model_fields:
            raise KeyError(f"Unknown settings field: {field}")
        setattr(current, field, "" if value is None else str(value))
        SmartLogger.log(
            "DEBUG",
            "settings.update",
            category="settings.store",
            params=sanitize_for_log({"key": self.key, field: getattr(current, field)}),
        )
        self.schedule_save()
        return current

    def save(self) -> None:
        """Write this extension's object, leaving other keys in the file intact."""
        data = self._read_file()
        data[self.key] = self.get().model_dump()

        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        SmartLogger.log("DEBUG", "settings.save", category="settings.store", params={"key": self.key})

    def schedule_save(self) -> None:
        """Debounced save; saves immediately when no event loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save()
            return
        if self._pending_save is not None and not self._pending_save.done():
            self._pending_save.cancel()
        self._pending_save = loop.create_task(self._save_later())
        self._pending_save.add_done_callback(self._log_save_failure)

    async def _save_later(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self.save()

    def _log_save_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        SmartLogger.log(
            "ERROR",
            "settings.save.failed",
            category="settings.store",
            params={"key": self.key, "path": self.path, "error": repr(exc)},
        )

    async def flush(self) -> None:
        """Persist any pending change now."""
        pending = self._pending_save
        self._pending_save = None
        if pending is not None and not pending.done():
            pending.cancel()
            self.save()
