import json
import os
import threading
import time
from datetime import datetime
from typing import Any, Optional


class SmartLogger:
    """Structured JSONL logger.

    Entries go to the console and, when enabled, to a main JSONL file. Params
    larger than ``max_inline_chars`` are spilled into a per-entry detail file
    and only their shape is kept inline.
    """

    LEVEL_PRIORITY = {
        "DEBUG": 0,
        "INFO": 1,
        "WARNING": 2,
        "ERROR": 3,
        "CRITICAL": 4,
    }
    _instance = None

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls):
        cls._instance = None

    @classmethod
    def log(cls, level, message, category=None, params=None, max_inline_chars=100):
        cls.instance()._log(level, message, category, params, max_inline_chars)

    def __init__(self,
                 main_log_path=None,
                 detail_log_dir=None,
                 min_level=None,
                 include_all_min_level=None,
                 console_output=None,
                 file_output=None,
                 blacklist_messages=None):
        self.main_log_path = self._env(main_log_path, "MAIN_PATH", "logs/sqlquery.jsonl")
        self.detail_log_dir = self._env(detail_log_dir, "DETAIL_DIR", "logs/details")
        self.min_level = self._env(min_level, "MIN_LEVEL", "INFO")
        self.include_all_min_level = self._env(include_all_min_level, "INCLUDE_ALL_MIN_LEVEL", "ERROR")
        self.console_output = self._env(
            str(console_output) if console_output is not None else None, "CONSOLE", "True"
        ) == "True"
        self.file_output = self._env(
            str(file_output) if file_output is not None else None, "FILE", "False"
        ) == "True"
        self.blacklist_messages = self._parse_blacklist(
            blacklist_messages if blacklist_messages is not None
            else os.environ.get("SQLQUERY_LOG_BLACKLIST")
        )

        self._lock = threading.Lock()
        self._last_timestamp = None
        self._timestamp_counter = 0

        if self.file_output:
            os.makedirs(os.path.dirname(self.main_log_path) or ".", exist_ok=True)
            os.makedirs(self.detail_log_dir, exist_ok=True)

    @staticmethod
    def _env(direct_value: Optional[str], key: str, default: str) -> str:
        if direct_value is not None:
            return direct_value
        return os.environ.get(f"SQLQUERY_LOG_{key}", default)

    @staticmethod
    def _parse_blacklist(raw: Any) -> list:
        """Accepts an iterable of substrings, a JSON array string, or a comma list."""
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = raw.strip()
            if not raw:
                return []
            try:
                parsed = json.loads(raw)
                items = parsed if isinstance(parsed, list) else []
            except ValueError:
                items = raw.split(",")
        else:
            items = list(raw)
        return [str(item).strip() for item in items if item is not None and str(item).strip()]

    def _is_blacklisted(self, text: str) -> bool:
        return any(needle in text for needle in self.blacklist_messages)

    def _next_trace_id(self):
        # Same-second entries get _1, _2, ... suffixes.
        current = str(int(time.time()))
        if self._last_timestamp == current:
            self._timestamp_counter += 1
        else:
            self._last_timestamp = current
            self._timestamp_counter = 1
        return f"{current}_{self._timestamp_counter}"

    def _save_detail_payload(self, trace_id, payload):
        if not self.file_output:
            return None
        filename = f"{trace_id}.json"
        try:
            with open(os.path.join(self.detail_log_dir, filename), "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
            return filename
        except OSError as e:
            return f"Error saving detail: {e}"

    def _priority(self, level, fallback):
        return self.LEVEL_PRIORITY.get(str(level).upper(), fallback)

    def _should_log(self, level):
        return self._priority(level, 1) >= self.LEVEL_PRIORITY.get(self.min_level.upper(), 0)

    def _should_include_all(self, level):
        return self._priority(level, 1) >= self.LEVEL_PRIORITY.get(self.include_all_min_level.upper(), 3)

    def _log(self, level, message, category=None, params=None, max_inline_chars=100):
        message = "" if message is None else str(message)
        if self._is_blacklisted(message + (category or "")):
            return
        if not self._should_log(level):
            return

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "message": message,
        }
        if category:
            log_entry["category"] = category

        if params:
            if len(str(params)) <= max_inline_chars or self._should_include_all(level):
                log_entry["params_summary"] = params
            else:
                detail_ref = self._save_detail_payload(self._next_trace_id(), params)
                if detail_ref is None:
                    log_entry["detail_save_error"] = "file_output_disabled"
                elif detail_ref.startswith("Error"):
                    log_entry["detail_save_error"] = detail_ref
                else:
                    log_entry["has_detail_file"] = True
                    log_entry["detail_ref"] = detail_ref

                if isinstance(params, dict):
                    log_entry["params_summary"] = {"keys": list(params.keys())}
                elif isinstance(params, (list, tuple)):
                    log_entry["params_summary"] = {"type": type(params).__name__, "length": len(params)}
                else:
                    log_entry["params_summary"] = {"type": type(params).__name__}

        if self.file_output:
            with self._lock:
                with open(self.main_log_path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")

        if self.console_output:
            category_str = f"[{category}]" if category else ""
            if self._should_include_all(level):
                print(f"[{level}]{category_str} {message} {params}")
            else:
                print(f"[{level}]{category_str} {message}")
