from __future__ import annotations

import logging
import time
from typing import Callable
from zoneinfo import ZoneInfo

from marketdesk.cache import MARKET_DATA_KEY, CacheStore
from marketdesk.errors import MalformedPayloadError, UpstreamError
from marketdesk.providers.finnhub import QUOTE_PATH, FinnhubClient, decode_payload
from marketdesk.schemas.market import MarketDataRecord, Quote, TrackedSymbol
from marketdesk.services.mapping import build_market_data_record
from marketdesk.services.market_status import MarketStatusMonitor
from marketdesk.services.symbols import SymbolCatalogResolver
from marketdesk.singleflight import SingleFlight

logger = logging.getLogger(__name__)


class MarketDataAggregator:
    """Builds the merged symbol/quote snapshot and publishes it to the cache.

    A pass is skipped when a snapshot is already cached and the exchange is
    closed. Otherwise quotes are fetched one symbol at a time with a fixed
    pause between requests; symbols whose quote fails are left out.
    """

    def __init__(
        self,
        client: FinnhubClient,
        cache: CacheStore,
        symbols: SymbolCatalogResolver,
        market_status: MarketStatusMonitor,
        ttl_seconds: int,
        request_delay_ms: int,
        retry_delay_seconds: float,
        retry_attempts: int,
        display_timezone: str,
        single_flight: SingleFlight | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._cache = cache
        self._symbols = symbols
        self._market_status = market_status
        self._ttl = ttl_seconds
        self._request_delay = request_delay_ms / 1000
        self._retry_delay = retry_delay_seconds
        self._retry_attempts = retry_attempts
        self._tz = ZoneInfo(display_timezone)
        self._single_flight = single_flight or SingleFlight()
        self._sleep = sleep

    def refresh_market_data(self, force: bool = False) -> tuple[MarketDataRecord, ...]:
        return self._single_flight.do(MARKET_DATA_KEY, lambda: self._refresh(force))

    def _refresh(self, force: bool) -> tuple[MarketDataRecord, ...]:
        previous = self._cache.get_market_data()
        if previous is not None and not force:
            status = self._market_status.current_market_status()
            if not status.is_open:
                logger.info(
                    f"Skipping market data refresh: market {status.exchange} closed "
                    f"(source={status.source}), serving {len(previous)} cached records"
                )
                return previous

        try:
            symbols = self._symbols.resolve_symbols()
        except UpstreamError as exc:
            logger.error(f"Could not resolve stock symbols, keeping previous snapshot: {exc}")
            return previous if previous is not None else ()

        records: list[MarketDataRecord] = []
        for symbol in symbols:
            quote = self._fetch_quote(symbol)
            self._sleep(self._request_delay)
            if quote is None:
                continue
            records.append(build_market_data_record(symbol, quote, self._tz))

        snapshot = tuple(records)
        self._cache.set_market_data(snapshot, self._ttl)
        logger.info(
            f"Caching market data for {len(snapshot)}/{len(symbols)} symbols "
            f"for {self._ttl} seconds"
        )
        return snapshot

    def _fetch_quote(self, symbol: TrackedSymbol) -> Quote | None:
        response = self._client.fetch_with_retry(
            QUOTE_PATH,
            {"symbol": symbol.symbol},
            self._retry_delay,
            self._retry_attempts,
        )
        try:
            return decode_payload(response, Quote)
        except UpstreamError as exc:
            logger.warning(f"Failed to retrieve quote for symbol {symbol.symbol}: {exc}")
        except MalformedPayloadError as exc:
            logger.error(f"Discarding malformed quote for symbol {symbol.symbol}: {exc}")
        return None
