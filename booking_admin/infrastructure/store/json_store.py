from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from booking_admin.application.ports.key_value_store import KeyValueStorePort


class JsonKeyValueStore(KeyValueStorePort):
    def __init__(self, data_dir: str = "./data/state", filename: str = "local_state.json") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._data_dir / filename
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _load(self) -> dict[str, Any]:
        """Load all keys from disk, return empty state if missing or corrupted."""
        if not self._file_path.exists():
            return {}

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self._logger.warning(
                "Local state file unreadable, starting empty",
                extra={"path": str(self._file_path), "error": str(e)},
            )
            return {}

        if not isinstance(data, dict):
            self._logger.warning("Local state file is not an object, starting empty", extra={"path": str(self._file_path)})
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        """Save all keys to disk atomically."""
        temp_path = self._file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(self._file_path)
        except Exception:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    self._logger.warning("Could not remove temp state file", extra={"path": str(temp_path)})
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._load()
