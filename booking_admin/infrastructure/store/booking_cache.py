from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from booking_admin.application.ports.key_value_store import KeyValueStorePort
from booking_admin.domain.entities.cache_state import CacheSignal, CacheState

CACHE_KEY = "bookings_cache"
CACHE_VALID_KEY = "bookings_cache_valid"


class BookingCache:
    """
    Last fetched raw booking collection plus its validity flag.

    Invalid until the first successful fetch. Any overlay write or remote
    mutation invalidates it; only store() makes it valid again. There is
    no time-based expiry.
    """

    def __init__(self, kv: KeyValueStorePort) -> None:
        self._kv = kv
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> CacheState:
        return CacheState.VALID if self._kv.contains(CACHE_VALID_KEY) else CacheState.INVALID

    @property
    def is_valid(self) -> bool:
        return self.state is CacheState.VALID

    def raw(self) -> list[dict[str, Any]] | None:
        """Stored collection, or None when nothing was ever cached (or it was cleared)."""
        value = self._kv.get(CACHE_KEY)
        if value is None:
            return None
        if not isinstance(value, list):
            self._logger.warning("Discarding malformed bookings cache", extra={"state": self.state.value})
            return None
        return value

    def store(self, raw: list[dict[str, Any]]) -> None:
        self._kv.set(CACHE_KEY, list(raw))
        self._kv.set(CACHE_VALID_KEY, True)
        self._logger.debug("Bookings cache stored", extra={"count": len(raw), "state": CacheState.VALID.value})

    def invalidate(self) -> None:
        self._kv.remove(CACHE_VALID_KEY)
        self._logger.debug("Bookings cache invalidated", extra={"state": CacheState.INVALID.value})

    def clear(self) -> None:
        self._kv.remove(CACHE_KEY)
        self._kv.remove(CACHE_VALID_KEY)
        self._logger.info("Bookings cache cleared")

    async def handle_signal(
        self,
        signal: CacheSignal | str,
        refetch: Callable[[], Awaitable[Any]],
    ) -> bool:
        """On navigation/focus, refetch only if the cache is invalid. Returns True if it refetched."""
        signal = CacheSignal(signal)
        if self.is_valid:
            self._logger.debug("Cache valid, ignoring signal", extra={"reason": signal.value})
            return False
        self._logger.info("Cache invalid, refetching", extra={"reason": signal.value})
        await refetch()
        return True
