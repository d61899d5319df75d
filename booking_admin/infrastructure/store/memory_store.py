from __future__ import annotations

import copy
import threading
from typing import Any

from booking_admin.application.ports.key_value_store import KeyValueStorePort


class MemoryKeyValueStore(KeyValueStorePort):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._values:
                return default
            # Callers mutate what they read; hand out copies like the file store does.
            return copy.deepcopy(self._values[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._values
