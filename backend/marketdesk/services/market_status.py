from __future__ import annotations

import logging
import time
from typing import Callable

from marketdesk.cache import CacheStore
from marketdesk.errors import MalformedPayloadError, UpstreamError
from marketdesk.providers.finnhub import MARKET_STATUS_PATH, FinnhubClient, decode_payload
from marketdesk.schemas.market import MarketStatus

logger = logging.getLogger(__name__)


class MarketStatusMonitor:
    """Exchange open/closed state, cached and used to gate aggregation.

    When upstream cannot be read and no real status is still cached, a
    closed status is synthesized (marked ``source="fallback"``) and cached
    briefly, so an outage never stalls the pipeline and never passes for a
    real observation.
    """

    def __init__(
        self,
        client: FinnhubClient,
        cache: CacheStore,
        exchange: str,
        ttl_seconds: int,
        fallback_ttl_seconds: int,
        fallback_timezone: str,
        retry_delay_seconds: float,
        retry_attempts: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._cache = cache
        self._exchange = exchange
        self._ttl = ttl_seconds
        self._fallback_ttl = fallback_ttl_seconds
        self._fallback_timezone = fallback_timezone
        self._retry_delay = retry_delay_seconds
        self._retry_attempts = retry_attempts
        self._clock = clock

    def resolve_market_status(self) -> MarketStatus:
        response = self._client.fetch_with_retry(
            MARKET_STATUS_PATH,
            {"exchange": self._exchange},
            self._retry_delay,
            self._retry_attempts,
        )
        try:
            status = decode_payload(response, MarketStatus)
        except (UpstreamError, MalformedPayloadError) as exc:
            return self._fallback(exc)

        self._cache.set_market_status(status, self._ttl)
        state = "open" if status.is_open else "closed"
        logger.info(f"Market {status.exchange} is {state} (session={status.session})")
        return status

    def current_market_status(self) -> MarketStatus:
        cached = self._cache.get_market_status()
        if cached is not None:
            return cached
        return self.resolve_market_status()

    def _fallback(self, exc: Exception) -> MarketStatus:
        cached = self._cache.get_market_status()
        if cached is not None and cached.source == "upstream":
            logger.warning(f"Market status refresh failed ({exc}); keeping cached upstream status")
            return cached

        status = MarketStatus(
            exchange=self._exchange,
            is_open=False,
            timestamp=int(self._clock()),
            timezone=self._fallback_timezone,
            source="fallback",
        )
        logger.warning(
            f"Market status unavailable ({exc}); using synthesized fallback status "
            f"(closed) for {self._fallback_ttl} seconds"
        )
        self._cache.set_market_status(status, self._fallback_ttl)
        return status
