from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from marketdesk.cache import CacheStore
from marketdesk.errors import ConfigurationError
from marketdesk.providers.finnhub import SYMBOL_CATALOG_PATH, FinnhubClient, decode_payload
from marketdesk.schemas.market import TrackedSymbol

logger = logging.getLogger(__name__)


def load_allowlist(path: str | Path) -> frozenset[str]:
    """Read the tracked tickers, one per line. ``#`` starts a comment."""
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigurationError(f"Allow-list not readable at {path}: {exc}") from exc

    tickers = set()
    for line in lines:
        ticker = line.split("#", 1)[0].strip().upper()
        if ticker:
            tickers.add(ticker)
    if not tickers:
        raise ConfigurationError(f"Allow-list at {path} contains no tickers.")
    return frozenset(tickers)


def filter_symbols(
    catalog: Iterable[TrackedSymbol], allowlist: frozenset[str]
) -> tuple[TrackedSymbol, ...]:
    seen: set[str] = set()
    tracked: list[TrackedSymbol] = []
    for item in catalog:
        if item.symbol in allowlist and item.symbol not in seen:
            seen.add(item.symbol)
            tracked.append(item)
    return tuple(tracked)


class SymbolCatalogResolver:
    def __init__(
        self,
        client: FinnhubClient,
        cache: CacheStore,
        allowlist: frozenset[str],
        exchange: str,
        ttl_seconds: int,
    ) -> None:
        self._client = client
        self._cache = cache
        self._allowlist = allowlist
        self._exchange = exchange
        self._ttl = ttl_seconds

    @property
    def allowlist(self) -> frozenset[str]:
        return self._allowlist

    def resolve_symbols(self) -> tuple[TrackedSymbol, ...]:
        cached = self._cache.get_symbols()
        if cached:
            return cached
        return self.refresh_symbols()

    def refresh_symbols(self) -> tuple[TrackedSymbol, ...]:
        response = self._client.fetch(SYMBOL_CATALOG_PATH, {"exchange": self._exchange})
        catalog = decode_payload(response, list[TrackedSymbol])

        tracked = filter_symbols(catalog, self._allowlist)
        if not tracked:
            logger.warning(
                f"Catalog for exchange {self._exchange} had {len(catalog)} symbols, none allow-listed"
            )
        self._cache.set_symbols(tracked, self._ttl)
        logger.info(f"Caching {len(tracked)} stock symbols for {self._ttl} seconds")
        return tracked
