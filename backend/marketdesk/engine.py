from __future__ import annotations

import time
from typing import Callable

from marketdesk.cache import CacheStore
from marketdesk.config.settings import Settings, get_settings
from marketdesk.providers.finnhub import FinnhubClient
from marketdesk.services.market_data import MarketDataAggregator
from marketdesk.services.market_status import MarketStatusMonitor
from marketdesk.services.symbols import SymbolCatalogResolver, load_allowlist
from marketdesk.singleflight import SingleFlight


class MarketDataEngine:
    """The wired set of components sharing one cache and one upstream client."""

    def __init__(
        self,
        settings: Settings,
        cache: CacheStore,
        client: FinnhubClient,
        symbols: SymbolCatalogResolver,
        market_status: MarketStatusMonitor,
        market_data: MarketDataAggregator,
        single_flight: SingleFlight,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.client = client
        self.symbols = symbols
        self.market_status = market_status
        self.market_data = market_data
        self.single_flight = single_flight


def build_engine(
    settings: Settings | None = None,
    client: FinnhubClient | None = None,
    cache: CacheStore | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> MarketDataEngine:
    """Construct every component from ``settings``.

    Raises ``ConfigurationError`` when the API token or the allow-list is
    missing; nothing is built in a partially configured state.
    """
    settings = settings or get_settings()
    cache = cache or CacheStore()
    if client is None:
        client = FinnhubClient(
            base_url=settings.upstream.base_url,
            api_token=settings.upstream.api_token,
            timeout_seconds=settings.upstream.timeout_seconds,
            sleep=sleep,
        )
    single_flight = SingleFlight()

    symbols = SymbolCatalogResolver(
        client=client,
        cache=cache,
        allowlist=load_allowlist(settings.allowlist_path),
        exchange=settings.upstream.exchange,
        ttl_seconds=settings.ttl.symbols_seconds,
    )
    market_status = MarketStatusMonitor(
        client=client,
        cache=cache,
        exchange=settings.upstream.exchange,
        ttl_seconds=settings.ttl.market_status_seconds,
        fallback_ttl_seconds=settings.ttl.market_status_fallback_seconds,
        fallback_timezone=settings.fallback_timezone,
        retry_delay_seconds=settings.retry.status_delay_seconds,
        retry_attempts=settings.retry.status_max_attempts,
    )
    market_data = MarketDataAggregator(
        client=client,
        cache=cache,
        symbols=symbols,
        market_status=market_status,
        ttl_seconds=settings.ttl.market_data_seconds,
        request_delay_ms=settings.request_delay_ms,
        retry_delay_seconds=settings.retry.quote_delay_seconds,
        retry_attempts=settings.retry.quote_max_attempts,
        display_timezone=settings.display_timezone,
        single_flight=single_flight,
        sleep=sleep,
    )
    return MarketDataEngine(
        settings=settings,
        cache=cache,
        client=client,
        symbols=symbols,
        market_status=market_status,
        market_data=market_data,
        single_flight=single_flight,
    )
