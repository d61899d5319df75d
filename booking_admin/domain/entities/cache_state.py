from __future__ import annotations

from enum import Enum


class CacheState(str, Enum):
    VALID = "valid"  # cached collection may be reused
    INVALID = "invalid"  # next read must refetch


class CacheSignal(str, Enum):
    NAVIGATION = "navigation"
    FOCUS = "focus"
