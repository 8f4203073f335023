from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

from marketdesk.schemas.market import MarketDataRecord, MarketStatus, TrackedSymbol


SYMBOLS_KEY = "symbols"
MARKET_DATA_KEY = "quotes/market-data"
MARKET_STATUS_KEY = "market-status"


class CacheStore:
    """In-process key/value store with a per-entry TTL.

    Expiry is checked on read: an entry at or past its deadline is a miss and
    is dropped. Each key has its own lock, held only for the dict access, so
    a slow writer of one dataset never blocks readers of another. Entries are
    replaced with a single assignment of an immutable tuple.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        lock = self._locks.get(key)
        if lock is None:
            with self._locks_guard:
                lock = self._locks.setdefault(key, threading.Lock())
        return lock

    def get(self, key: str) -> Any:
        with self._lock_for(key):
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock_for(key):
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock_for(key):
            self._entries.pop(key, None)

    # Typed accessors for the three datasets.

    def get_symbols(self) -> Optional[tuple[TrackedSymbol, ...]]:
        return self.get(SYMBOLS_KEY)

    def set_symbols(self, symbols: tuple[TrackedSymbol, ...], ttl_seconds: float) -> None:
        self.set(SYMBOLS_KEY, tuple(symbols), ttl_seconds)

    def get_market_data(self) -> Optional[tuple[MarketDataRecord, ...]]:
        return self.get(MARKET_DATA_KEY)

    def set_market_data(self, records: tuple[MarketDataRecord, ...], ttl_seconds: float) -> None:
        self.set(MARKET_DATA_KEY, tuple(records), ttl_seconds)

    def get_market_status(self) -> Optional[MarketStatus]:
        return self.get(MARKET_STATUS_KEY)

    def set_market_status(self, status: MarketStatus, ttl_seconds: float) -> None:
        self.set(MARKET_STATUS_KEY, status, ttl_seconds)
